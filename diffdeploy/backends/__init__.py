"""Remote backends for diffdeploy."""

from typing import Optional

from ..exceptions import DeployConfigError
from .base import RemoteBackend, RemoteSession
from .ftp import FTPBackend, FTPSession
from .sftp import SFTPBackend, SFTPSession

BACKENDS: dict[str, type[RemoteBackend]] = {
    FTPBackend.name: FTPBackend,
    SFTPBackend.name: SFTPBackend,
}


def get_backend(
    protocol: str, port: Optional[int] = None, timeout: float = 30.0
) -> RemoteBackend:
    """Create the backend for a protocol name ("ftp" or "sftp").

    Raises:
        DeployConfigError: If the protocol is unknown
    """
    try:
        backend_class = BACKENDS[protocol.lower()]
    except KeyError:
        raise DeployConfigError(
            f"Unknown protocol '{protocol}'. Valid protocols: {', '.join(BACKENDS)}"
        ) from None
    return backend_class(port=port, timeout=timeout)


__all__ = [
    "BACKENDS",
    "FTPBackend",
    "FTPSession",
    "RemoteBackend",
    "RemoteSession",
    "SFTPBackend",
    "SFTPSession",
    "get_backend",
]
