"""Diff-based deployment engine."""

from .engine import DeployEngine, DeployResult, RunState
from .entries import ROOT_DESTINATION, Entry, EntryKind, resolve_entries
from .executor import ExecutionEngine, OperationOutcome
from .manifest import MANIFEST_NAME, RemoteManifestStore
from .operations import Operation, OperationKind
from .planner import DiffPlanner
from .scanner import DirectoryScanner, filter_existing
from .signatures import Manifest, SignatureBuilder, compute_signature
from .target import DeployTarget, TargetConfigError, load_targets_from_json

__all__ = [
    "DeployEngine",
    "DeployResult",
    "RunState",
    "Entry",
    "EntryKind",
    "ROOT_DESTINATION",
    "resolve_entries",
    "ExecutionEngine",
    "OperationOutcome",
    "MANIFEST_NAME",
    "RemoteManifestStore",
    "Operation",
    "OperationKind",
    "DiffPlanner",
    "DirectoryScanner",
    "filter_existing",
    "Manifest",
    "SignatureBuilder",
    "compute_signature",
    "DeployTarget",
    "TargetConfigError",
    "load_targets_from_json",
]
