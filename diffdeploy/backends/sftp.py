"""SFTP backend built on paramiko."""

import logging
import stat
from typing import BinaryIO, NoReturn, Optional

import paramiko

from ..exceptions import (
    RemoteAlreadyExistsError,
    RemoteAuthenticationError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnsupportedError,
)
from .base import RemoteBackend, RemoteSession

logger = logging.getLogger(__name__)


class SFTPSession(RemoteSession):
    """Session on an SSH server through its SFTP subsystem.

    paramiko reports most failures as a bare ``IOError`` carrying the
    server text, so ambiguous failures are resolved with a ``stat`` of the
    path involved.
    """

    def __init__(self, ssh: paramiko.SSHClient, sftp: paramiko.SFTPClient):
        self._ssh = ssh
        self._sftp = sftp

    def _remote_mode(self, path: str) -> Optional[int]:
        try:
            return self._sftp.stat(path).st_mode
        except OSError:
            return None

    def _raise(self, error: OSError, path: str) -> NoReturn:
        if isinstance(error, FileNotFoundError):
            raise RemoteNotFoundError(f"{path}: {error}") from error
        raise RemoteError(f"{path}: {error}") from error

    def change_directory(self, path: str) -> None:
        try:
            self._sftp.chdir(path)
        except OSError as e:
            self._raise(e, path)

    def read_file(self, path: str) -> bytes:
        try:
            with self._sftp.open(path, "rb") as f:
                return f.read()
        except OSError as e:
            self._raise(e, path)

    def write_file(self, path: str, stream: BinaryIO) -> None:
        try:
            self._sftp.putfo(stream, path)
        except OSError as e:
            raise RemoteError(f"{path}: {e}") from e

    def make_directory(self, path: str) -> None:
        try:
            self._sftp.mkdir(path)
        except OSError as e:
            mode = self._remote_mode(path)
            if mode is not None and stat.S_ISDIR(mode):
                raise RemoteAlreadyExistsError(f"{path}: already exists") from e
            raise RemoteError(f"{path}: {e}") from e

    def set_permissions(self, path: str, permissions: int) -> None:
        try:
            self._sftp.chmod(path, permissions)
        except OSError as e:
            if "unsupported" in str(e).lower():
                raise RemoteUnsupportedError(f"{path}: {e}") from e
            raise RemoteError(f"{path}: {e}") from e

    def delete_file(self, path: str) -> None:
        try:
            self._sftp.remove(path)
        except OSError as e:
            mode = self._remote_mode(path)
            if mode is not None and stat.S_ISDIR(mode):
                raise RemoteNotFoundError(f"{path}: is a directory") from e
            self._raise(e, path)

    def delete_directory(self, path: str) -> None:
        try:
            self._sftp.rmdir(path)
        except OSError as e:
            self._raise(e, path)

    def close(self) -> None:
        self._sftp.close()
        self._ssh.close()


class SFTPBackend(RemoteBackend):
    """SFTP backend with password authentication."""

    name = "sftp"
    default_port = 22

    def __init__(self, port: Optional[int] = None, timeout: float = 30.0):
        super().__init__(port=port, timeout=timeout)

    def connect(self, host: str, username: str, password: str) -> SFTPSession:
        logger.debug(f"Connecting to sftp://{username}@{host}:{self.port}")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=host,
                port=self.port,
                username=username,
                password=password,
                timeout=self.timeout,
                banner_timeout=self.timeout,
                auth_timeout=self.timeout,
                allow_agent=False,
                look_for_keys=False,
            )
            sftp = client.open_sftp()
        except paramiko.AuthenticationException as e:
            client.close()
            raise RemoteAuthenticationError("bad username or password") from e
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise RemoteError(f"Cannot connect to {host}:{self.port}: {e}") from e
        return SFTPSession(client, sftp)
