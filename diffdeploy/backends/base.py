"""Capability interface every remote backend implements."""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class RemoteSession(ABC):
    """An authenticated connection to a remote store.

    Paths are relative to the current remote directory unless absolute.
    Implementations translate protocol errors into the ``Remote*Error``
    classes from :mod:`diffdeploy.exceptions`.
    """

    @abstractmethod
    def change_directory(self, path: str) -> None:
        """Change the current remote directory.

        Raises:
            RemoteNotFoundError: If the directory does not exist
        """

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Read a whole remote file.

        Raises:
            RemoteNotFoundError: If the file does not exist
        """

    @abstractmethod
    def write_file(self, path: str, stream: BinaryIO) -> None:
        """Create or overwrite a remote file with the contents of ``stream``."""

    @abstractmethod
    def make_directory(self, path: str) -> None:
        """Create a remote directory.

        Raises:
            RemoteAlreadyExistsError: If the directory already exists
        """

    @abstractmethod
    def set_permissions(self, path: str, permissions: int) -> None:
        """Change the permission bits of a remote path.

        Raises:
            RemoteUnsupportedError: If the server cannot change permissions
        """

    @abstractmethod
    def delete_file(self, path: str) -> None:
        """Delete a remote file.

        Raises:
            RemoteNotFoundError: If there is no file at ``path``
        """

    @abstractmethod
    def delete_directory(self, path: str) -> None:
        """Delete an empty remote directory.

        Raises:
            RemoteNotFoundError: If there is no directory at ``path``
        """

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""

    def __enter__(self) -> "RemoteSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class RemoteBackend(ABC):
    """Factory for remote sessions of one protocol."""

    name: str = ""
    default_port: int = 0

    def __init__(self, port: Optional[int] = None, timeout: float = 30.0):
        """Initialize backend.

        Args:
            port: Server port (uses the protocol default if not provided)
            timeout: Network timeout in seconds
        """
        self.port = port or self.default_port
        self.timeout = timeout

    @abstractmethod
    def connect(self, host: str, username: str, password: str) -> RemoteSession:
        """Open and authenticate a new session.

        Raises:
            RemoteAuthenticationError: If the credentials are rejected
            RemoteError: If the server cannot be reached
        """
