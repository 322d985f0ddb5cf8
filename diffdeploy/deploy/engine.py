"""Core deploy engine orchestrating one diff-based deployment."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from ..backends.base import RemoteBackend, RemoteSession
from ..exceptions import DeployConfigError, DeployError
from .entries import Entry
from .executor import ExecutionEngine, OperationCallback, OperationOutcome
from .manifest import MANIFEST_NAME, RemoteManifestStore
from .operations import Operation, OperationKind
from .planner import DiffPlanner
from .signatures import DEFAULT_MAX_WORKERS, Manifest, SignatureBuilder
from .target import DeployTarget

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Stages of a deployment run."""

    PENDING = "pending"
    AUTHENTICATING = "authenticating"
    FETCHING_BASELINE = "fetching_baseline"
    DIFFING = "diffing"
    APPLYING = "applying"
    PERSISTING = "persisting"
    DONE = "done"
    PLANNED = "planned"
    """Dry run finished: plan computed, nothing applied"""
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.DONE, RunState.PLANNED, RunState.ABORTED)


@dataclass
class DeployResult:
    """Outcome of a deployment run."""

    state: RunState
    """Terminal state of the run"""

    plan: list[Operation]
    """Operations the planner produced"""

    applied: list[Operation] = field(default_factory=list)
    """Operations actually executed"""

    manifest: Manifest = field(default_factory=dict)
    """Local manifest (the new baseline when state is DONE)"""

    outcomes: list[tuple[Operation, OperationOutcome]] = field(default_factory=list)
    """Outcome of every executed operation, in order"""

    @property
    def stats(self) -> dict[str, int]:
        """Count of planned operations per kind."""
        stats = {kind.value: 0 for kind in OperationKind}
        for operation in self.plan:
            stats[operation.kind.value] += 1
        return stats

    @property
    def changes(self) -> dict[str, int]:
        """Count of operations per kind that actually changed the remote."""
        changes = {kind.value: 0 for kind in OperationKind}
        for operation, outcome in self.outcomes:
            if outcome == OperationOutcome.APPLIED:
                changes[operation.kind.value] += 1
        return changes


class DeployEngine:
    """Runs a deployment: authenticate, diff, apply, persist.

    Two sessions are opened: a read session that loads the baseline
    manifest while local files are hashed, and a write session that
    performs every change and saves the new manifest.

    Examples:
        >>> engine = DeployEngine(FTPBackend(), DeployTarget(host="example.com",
        ...     username="deploy", password="secret"))
        >>> result = engine.deploy(resolve_entries(pairs))
        >>> print(result.stats)
    """

    def __init__(
        self,
        backend: RemoteBackend,
        target: DeployTarget,
        on_operation: Optional[OperationCallback] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        manifest_name: str = MANIFEST_NAME,
    ):
        """Initialize deploy engine.

        Args:
            backend: Remote backend used to open sessions
            target: Deploy target with host, credentials and options
            on_operation: Optional callback invoked after every operation
            max_workers: Maximum number of files hashed at the same time
            manifest_name: Name of the manifest file in the remote base
        """
        self.backend = backend
        self.target = target
        self.on_operation = on_operation
        self.signature_builder = SignatureBuilder(max_workers=max_workers)
        self.planner = DiffPlanner(disable_permissions=target.disable_perms)
        self.manifest_name = manifest_name
        self.state = RunState.PENDING

    def _enter(self, state: RunState) -> None:
        logger.debug(f"Deploy state: {self.state.value} -> {state.value}")
        self.state = state

    def _open_session(self) -> RemoteSession:
        session = self.backend.connect(
            self.target.host,
            self.target.username or "",
            self.target.password or "",
        )
        try:
            session.change_directory(self.target.remote_base)
        except DeployError:
            session.close()
            raise
        return session

    def deploy(self, entries: Iterable[Entry], dry_run: bool = False) -> DeployResult:
        """Deploy local entries to the target.

        Args:
            entries: Local entries, typically from ``resolve_entries``
            dry_run: If True, stop after planning; nothing is changed remotely

        Returns:
            DeployResult with state DONE (or PLANNED for a dry run)

        Raises:
            DeployError: On any fatal error; the state becomes ABORTED and
                the remote manifest is left untouched
        """
        if self.target.username is None or self.target.password is None:
            raise DeployConfigError("Username and password are required")

        entries = list(entries)
        write_session: Optional[RemoteSession] = None
        read_session: Optional[RemoteSession] = None

        try:
            self._enter(RunState.AUTHENTICATING)
            logger.info(f"Pushing to: {self.target.host}")
            write_session = self._open_session()
            read_session = self._open_session()

            self._enter(RunState.FETCHING_BASELINE)
            remote_store = RemoteManifestStore(read_session, self.manifest_name)
            with ThreadPoolExecutor(max_workers=1) as executor:
                baseline_future = executor.submit(remote_store.fetch)
                local_manifest = self.signature_builder.build(entries)
                remote_manifest = baseline_future.result()

            self._enter(RunState.DIFFING)
            plan = self.planner.plan(local_manifest, remote_manifest, entries)
            result = DeployResult(
                state=self.state, plan=plan, manifest=local_manifest
            )
            if dry_run:
                self._enter(RunState.PLANNED)
                result.state = self.state
                return result

            self._enter(RunState.APPLYING)
            executor_engine = ExecutionEngine(write_session, self.on_operation)
            result.applied = executor_engine.apply(plan)
            result.outcomes = executor_engine.outcomes

            self._enter(RunState.PERSISTING)
            RemoteManifestStore(write_session, self.manifest_name).persist(
                local_manifest
            )

            self._enter(RunState.DONE)
            result.state = self.state
            logger.info(f"Deployed {len(result.applied)} operation(s)")
            return result
        except Exception:
            logger.error(f"Deployment aborted while {self.state.value}")
            self._enter(RunState.ABORTED)
            raise
        finally:
            for session in (read_session, write_session):
                if session is not None:
                    session.close()
