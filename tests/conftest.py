"""Shared fixtures and an in-memory remote backend for tests."""

import posixpath
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

import pytest

from diffdeploy.backends.base import RemoteBackend, RemoteSession
from diffdeploy.exceptions import (
    RemoteAlreadyExistsError,
    RemoteAuthenticationError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnsupportedError,
)


class MemoryStore:
    """Remote filesystem shared by every session of a MemoryBackend."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.dirs: set[str] = {"/"}
        self.modes: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}

    def fail(self, method: str, path: str, error: Exception) -> None:
        """Make ``method`` raise ``error`` for ``path`` (absolute)."""
        self.failures[(method, path)] = error


class MemorySession(RemoteSession):
    def __init__(self, store: MemoryStore, supports_chmod: bool):
        self.store = store
        self.supports_chmod = supports_chmod
        self.cwd = "/"
        self.closed = False

    def _abs(self, path: str) -> str:
        return posixpath.normpath(posixpath.join(self.cwd, path))

    def _record(self, method: str, path: str) -> str:
        full = self._abs(path)
        self.store.calls.append((method, full))
        error = self.store.failures.get((method, full))
        if error is not None:
            raise error
        return full

    def change_directory(self, path: str) -> None:
        full = self._record("change_directory", path)
        if full not in self.store.dirs:
            raise RemoteNotFoundError(full)
        self.cwd = full

    def read_file(self, path: str) -> bytes:
        full = self._record("read_file", path)
        if full not in self.store.files:
            raise RemoteNotFoundError(full)
        return self.store.files[full]

    def write_file(self, path: str, stream: BinaryIO) -> None:
        full = self._record("write_file", path)
        if posixpath.dirname(full) not in self.store.dirs:
            raise RemoteError(f"{full}: parent directory missing")
        self.store.files[full] = stream.read()

    def make_directory(self, path: str) -> None:
        full = self._record("make_directory", path)
        if full in self.store.dirs:
            raise RemoteAlreadyExistsError(full)
        if posixpath.dirname(full) not in self.store.dirs:
            raise RemoteError(f"{full}: parent directory missing")
        self.store.dirs.add(full)

    def set_permissions(self, path: str, permissions: int) -> None:
        full = self._record("set_permissions", path)
        if not self.supports_chmod:
            raise RemoteUnsupportedError("502 SITE CHMOD not implemented")
        if full not in self.store.files and full not in self.store.dirs:
            raise RemoteError(f"{full}: no such path")
        self.store.modes[full] = permissions

    def delete_file(self, path: str) -> None:
        full = self._record("delete_file", path)
        if full not in self.store.files:
            raise RemoteNotFoundError(full)
        del self.store.files[full]
        self.store.modes.pop(full, None)

    def delete_directory(self, path: str) -> None:
        full = self._record("delete_directory", path)
        if full not in self.store.dirs:
            raise RemoteNotFoundError(full)
        prefix = full.rstrip("/") + "/"
        if any(p.startswith(prefix) for p in self.store.files) or any(
            d.startswith(prefix) for d in self.store.dirs
        ):
            raise RemoteError(f"{full}: directory not empty")
        self.store.dirs.discard(full)
        self.store.modes.pop(full, None)

    def close(self) -> None:
        self.closed = True


class MemoryBackend(RemoteBackend):
    """Backend keeping the remote tree in memory."""

    name = "memory"

    def __init__(
        self,
        store: Optional[MemoryStore] = None,
        username: str = "deploy",
        password: str = "secret",
        supports_chmod: bool = True,
    ):
        super().__init__()
        self.store = store or MemoryStore()
        self.username = username
        self.password = password
        self.supports_chmod = supports_chmod
        self.sessions: list[MemorySession] = []

    def connect(self, host: str, username: str, password: str) -> MemorySession:
        self.store.calls.append(("connect", host))
        if (username, password) != (self.username, self.password):
            raise RemoteAuthenticationError("530 Login incorrect")
        session = MemorySession(self.store, self.supports_chmod)
        self.sessions.append(session)
        return session

    def methods_called(self) -> list[str]:
        return [method for method, _ in self.store.calls]

    def mutations(self) -> list[tuple[str, str]]:
        """Calls that change the remote tree, excluding the manifest."""
        return [
            (method, path)
            for method, path in self.store.calls
            if method
            in (
                "write_file",
                "make_directory",
                "set_permissions",
                "delete_file",
                "delete_directory",
            )
            and not path.endswith("/push-hashes")
        ]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_backend():
    """Create an in-memory backend with a /www remote base."""
    backend = MemoryBackend()
    backend.store.dirs.add("/www")
    return backend
