"""Local entries participating in a deployment."""

import logging
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

from ..exceptions import LocalReadError

logger = logging.getLogger(__name__)

ROOT_DESTINATION = "."
"""Destination of the sync root; it is never created or uploaded"""

PERMISSION_MASK = 0o777


class EntryKind(str, Enum):
    """Kind of a local filesystem object."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Entry:
    """One local file or directory participating in a deployment."""

    source: Path
    """Local path of the file or directory"""

    destination: str
    """Remote path relative to the remote base (forward slashes)"""

    kind: EntryKind
    """Whether the entry is a file or a directory"""

    mode: int
    """Raw ``st_mode`` of the source"""

    @property
    def permissions(self) -> int:
        """Permission bits (rwxrwxrwx) with setuid/sticky/type bits masked off."""
        return self.mode & PERMISSION_MASK

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def is_root(self) -> bool:
        return self.destination == ROOT_DESTINATION

    @classmethod
    def from_path(cls, source: Union[str, Path], destination: str) -> "Entry":
        """Create an Entry by reading the metadata of ``source``.

        Args:
            source: Local path of the file or directory
            destination: Remote-relative destination path

        Returns:
            Entry instance

        Raises:
            LocalReadError: If the source cannot be inspected
        """
        if not str(source):
            raise ValueError("Entry source must not be empty")
        source = Path(source)

        try:
            st = source.stat()
        except OSError as e:
            raise LocalReadError(str(source), e.strerror or str(e)) from e

        if stat.S_ISDIR(st.st_mode):
            kind = EntryKind.DIRECTORY
        elif stat.S_ISREG(st.st_mode):
            kind = EntryKind.FILE
        else:
            raise LocalReadError(str(source), "not a regular file or directory")

        return cls(
            source=source,
            destination=normalize_destination(destination),
            kind=kind,
            mode=st.st_mode,
        )


def normalize_destination(destination: str) -> str:
    """Normalize a destination to a relative path with forward slashes.

    Examples:
        >>> normalize_destination("/assets//app.js")
        'assets/app.js'
        >>> normalize_destination("")
        '.'
    """
    parts = [
        part
        for part in destination.replace("\\", "/").split("/")
        if part and part != "."
    ]
    if not parts:
        return ROOT_DESTINATION
    return "/".join(parts)


def resolve_entries(pairs: Iterable[tuple[Union[str, Path], str]]) -> list[Entry]:
    """Turn (source, destination) pairs into Entries carrying file metadata.

    Args:
        pairs: Iterable of (source path, destination path) tuples

    Returns:
        List of Entry objects, in input order

    Raises:
        LocalReadError: If any source cannot be inspected
    """
    entries = [Entry.from_path(source, destination) for source, destination in pairs]
    logger.debug(f"Resolved {len(entries)} local entries")
    return entries
