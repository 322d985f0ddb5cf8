"""Directory scanning utilities for deployments."""

import fnmatch
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from .entries import ROOT_DESTINATION

logger = logging.getLogger(__name__)


class DirectoryScanner:
    """Expands a local directory into (source, destination) pairs.

    Both files and directories are listed, directories before their
    contents, starting with the directory itself mapped to ``"."``.

    Examples:
        >>> scanner = DirectoryScanner(ignore_patterns=["*.log", "cache/*"])
        >>> pairs = scanner.scan(Path("build"))
        >>> pairs[0]
        (PosixPath('build'), '.')
    """

    def __init__(
        self,
        ignore_patterns: Optional[list[str]] = None,
        exclude_dot_files: bool = False,
    ):
        """Initialize directory scanner.

        Args:
            ignore_patterns: Glob patterns matched against the relative path
                and the name of every file and directory
            exclude_dot_files: Whether to skip files/folders starting with dot
        """
        self.ignore_patterns = ignore_patterns or []
        self.exclude_dot_files = exclude_dot_files

    def should_ignore(self, relative_path: str) -> bool:
        """Check if a relative path should be ignored based on patterns."""
        name = relative_path.rsplit("/", 1)[-1]
        if self.exclude_dot_files and name.startswith("."):
            return True
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(
                name, pattern
            ):
                logger.debug(f"Ignoring (pattern {pattern!r}): {relative_path}")
                return True
        return False

    def scan(self, directory: Path) -> list[tuple[Path, str]]:
        """Recursively scan a local directory.

        Args:
            directory: Directory to deploy

        Returns:
            List of (source path, destination path) tuples

        Raises:
            NotADirectoryError: If ``directory`` is not a directory
        """
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        pairs: list[tuple[Path, str]] = [(directory, ROOT_DESTINATION)]
        self._scan_into(directory, directory, pairs)
        return pairs

    def _scan_into(
        self, directory: Path, base_path: Path, pairs: list[tuple[Path, str]]
    ) -> None:
        for item in sorted(directory.iterdir()):
            relative_path = item.relative_to(base_path).as_posix()
            if self.should_ignore(relative_path):
                continue

            if item.is_dir():
                pairs.append((item, relative_path))
                self._scan_into(item, base_path, pairs)
            elif item.is_file():
                pairs.append((item, relative_path))


def filter_existing(
    pairs: Iterable[tuple[Union[str, Path], str]],
) -> list[tuple[Path, str]]:
    """Drop pairs whose source does not exist, logging a warning for each.

    Args:
        pairs: Iterable of (source path, destination path) tuples

    Returns:
        List of pairs whose source exists
    """
    existing: list[tuple[Path, str]] = []
    for source, destination in pairs:
        source = Path(source)
        if not source.exists():
            logger.warning(f'Source file "{source}" not found.')
            continue
        existing.append((source, destination))
    return existing
