"""Planned remote operations."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class OperationKind(str, Enum):
    """Actions that can be taken against the remote store."""

    MAKE_DIRECTORY = "make_directory"
    """Create a remote directory"""

    UPLOAD_FILE = "upload_file"
    """Upload a whole local file"""

    SET_PERMISSIONS = "set_permissions"
    """Change the permission bits of a remote path"""

    DELETE_FILE = "delete_file"
    """Delete a remote path as a file"""

    DELETE_DIRECTORY = "delete_directory"
    """Delete a remote path as a directory"""


# Prefixes used when printing operations, one per kind
_PREFIXES = {
    OperationKind.MAKE_DIRECTORY: "d---------",
    OperationKind.UPLOAD_FILE: "f---------",
    OperationKind.SET_PERMISSIONS: "chmod",
    OperationKind.DELETE_FILE: "----------",
    OperationKind.DELETE_DIRECTORY: "----------",
}


@dataclass(frozen=True)
class Operation:
    """One planned action against the remote store."""

    kind: OperationKind
    """Action to take"""

    path: str
    """Remote path relative to the remote base"""

    source: Optional[Path] = None
    """Local file to upload (UPLOAD_FILE only)"""

    permissions: Optional[int] = None
    """Permission bits to set (SET_PERMISSIONS only)"""

    def describe(self) -> str:
        """Return a short human-readable description.

        Examples:
            >>> set_permissions("assets", 0o755).describe()
            'chmod 755 /assets'
        """
        prefix = _PREFIXES[self.kind]
        if self.kind == OperationKind.SET_PERMISSIONS:
            return f"{prefix} {self.permissions:o} /{self.path}"
        return f"{prefix} /{self.path}"


def make_directory(path: str) -> Operation:
    return Operation(OperationKind.MAKE_DIRECTORY, path)


def upload_file(path: str, source: Path) -> Operation:
    return Operation(OperationKind.UPLOAD_FILE, path, source=source)


def set_permissions(path: str, permissions: int) -> Operation:
    return Operation(OperationKind.SET_PERMISSIONS, path, permissions=permissions)


def delete_file(path: str) -> Operation:
    return Operation(OperationKind.DELETE_FILE, path)


def delete_directory(path: str) -> Operation:
    return Operation(OperationKind.DELETE_DIRECTORY, path)
