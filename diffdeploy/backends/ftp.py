"""FTP backend built on :mod:`ftplib`."""

import ftplib
import io
import logging
from typing import BinaryIO, NoReturn, Optional

from ..exceptions import (
    RemoteAlreadyExistsError,
    RemoteAuthenticationError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnsupportedError,
)
from .base import RemoteBackend, RemoteSession

logger = logging.getLogger(__name__)

# FTP reply codes with a meaning for deployments
NOT_LOGGED_IN = "530"
FILE_UNAVAILABLE = "550"
COMMAND_NOT_IMPLEMENTED = "502"
PARAMETER_NOT_IMPLEMENTED = "504"

_UNSUPPORTED_CODES = (COMMAND_NOT_IMPLEMENTED, PARAMETER_NOT_IMPLEMENTED)


def reply_code(error: Exception) -> str:
    """Extract the three digit reply code from an ftplib error."""
    return str(error)[:3]


class FTPSession(RemoteSession):
    """Session on an FTP server."""

    def __init__(self, ftp: ftplib.FTP):
        self.ftp = ftp

    def _raise(self, error: Exception, path: str) -> NoReturn:
        code = reply_code(error)
        if code == FILE_UNAVAILABLE:
            raise RemoteNotFoundError(f"{path}: {error}") from error
        raise RemoteError(f"{path}: {error}") from error

    def change_directory(self, path: str) -> None:
        try:
            self.ftp.cwd(path)
        except ftplib.all_errors as e:
            self._raise(e, path)

    def read_file(self, path: str) -> bytes:
        buffer = io.BytesIO()
        try:
            self.ftp.retrbinary(f"RETR {path}", buffer.write)
        except ftplib.all_errors as e:
            self._raise(e, path)
        return buffer.getvalue()

    def write_file(self, path: str, stream: BinaryIO) -> None:
        try:
            self.ftp.storbinary(f"STOR {path}", stream)
        except ftplib.all_errors as e:
            raise RemoteError(f"{path}: {e}") from e

    def make_directory(self, path: str) -> None:
        try:
            self.ftp.mkd(path)
        except ftplib.all_errors as e:
            # Servers answer 550 when the directory is already there
            if reply_code(e) == FILE_UNAVAILABLE:
                raise RemoteAlreadyExistsError(f"{path}: {e}") from e
            raise RemoteError(f"{path}: {e}") from e

    def set_permissions(self, path: str, permissions: int) -> None:
        try:
            self.ftp.sendcmd(f"SITE CHMOD {permissions:o} {path}")
        except ftplib.all_errors as e:
            # Windows and some hosts don't implement the CHMOD site extension
            if reply_code(e) in _UNSUPPORTED_CODES:
                raise RemoteUnsupportedError(f"{path}: {e}") from e
            raise RemoteError(f"{path}: {e}") from e

    def delete_file(self, path: str) -> None:
        try:
            self.ftp.delete(path)
        except ftplib.all_errors as e:
            self._raise(e, path)

    def delete_directory(self, path: str) -> None:
        try:
            self.ftp.rmd(path)
        except ftplib.all_errors as e:
            self._raise(e, path)

    def close(self) -> None:
        try:
            self.ftp.quit()
        except ftplib.all_errors:
            self.ftp.close()


class FTPBackend(RemoteBackend):
    """Plain FTP backend."""

    name = "ftp"
    default_port = 21

    def __init__(self, port: Optional[int] = None, timeout: float = 30.0):
        super().__init__(port=port, timeout=timeout)

    def connect(self, host: str, username: str, password: str) -> FTPSession:
        logger.debug(f"Connecting to ftp://{username}@{host}:{self.port}")
        ftp = ftplib.FTP(timeout=self.timeout)
        try:
            ftp.connect(host, self.port)
            ftp.login(username, password)
            # Check the session is usable before anything else is sent
            ftp.pwd()
        except ftplib.all_errors as e:
            ftp.close()
            if reply_code(e) == NOT_LOGGED_IN:
                raise RemoteAuthenticationError("bad username or password") from e
            raise RemoteError(f"Cannot connect to {host}:{self.port}: {e}") from e
        return FTPSession(ftp)
