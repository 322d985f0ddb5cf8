"""diffdeploy - push only what changed to an FTP or SFTP server."""

from .backends import FTPBackend, RemoteBackend, RemoteSession, SFTPBackend
from .deploy import (
    DeployEngine,
    DeployResult,
    DeployTarget,
    Entry,
    RunState,
    resolve_entries,
)
from .exceptions import (
    DeployConfigError,
    DeployError,
    LocalReadError,
    ManifestError,
    OperationError,
    RemoteAlreadyExistsError,
    RemoteAuthenticationError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnsupportedError,
)

__version__ = "0.1.0"

__all__ = [
    "DeployEngine",
    "DeployResult",
    "DeployTarget",
    "Entry",
    "RunState",
    "resolve_entries",
    "FTPBackend",
    "SFTPBackend",
    "RemoteBackend",
    "RemoteSession",
    "DeployConfigError",
    "DeployError",
    "LocalReadError",
    "ManifestError",
    "OperationError",
    "RemoteAlreadyExistsError",
    "RemoteAuthenticationError",
    "RemoteError",
    "RemoteNotFoundError",
    "RemoteUnsupportedError",
]
