"""Diff planning between the local tree and the deployed baseline."""

import logging
from typing import Iterable

from .entries import ROOT_DESTINATION, Entry
from .operations import (
    Operation,
    delete_directory,
    delete_file,
    make_directory,
    set_permissions,
    upload_file,
)
from .signatures import Manifest

logger = logging.getLogger(__name__)


def _segments(path: str) -> tuple[str, ...]:
    return tuple(part for part in path.split("/") if part)


def hierarchy_key(entry: Entry) -> tuple[str, ...]:
    """Sort key placing every directory before its descendants."""
    return _segments(entry.destination)


def deletion_key(path: str) -> tuple[int, str]:
    """Sort key for deletions: deepest paths first, then reverse lexical."""
    return (len(_segments(path)), path)


class DiffPlanner:
    """Computes the operations that bring the remote store up to date."""

    def __init__(self, disable_permissions: bool = False):
        """Initialize diff planner.

        Args:
            disable_permissions: If True, never emit SET_PERMISSIONS
        """
        self.disable_permissions = disable_permissions

    def plan(
        self,
        local_manifest: Manifest,
        remote_manifest: Manifest,
        entries: Iterable[Entry],
    ) -> list[Operation]:
        """Compare the local manifest with the baseline.

        Creates and uploads come first, ordered by destination hierarchy,
        each followed by its permission change. Deletions of paths that
        only exist in the baseline come last, deepest first, each as a
        file delete followed by a directory delete.

        Args:
            local_manifest: Freshly computed signatures
            remote_manifest: Signatures of the last successful deployment
            entries: Local entries the local manifest was built from

        Returns:
            Ordered list of operations
        """
        operations: list[Operation] = []

        for entry in sorted(entries, key=hierarchy_key):
            if entry.is_root:
                continue

            signature = local_manifest.get(entry.destination)
            if remote_manifest.get(entry.destination) == signature:
                logger.debug(f"ignored equal file: {entry.destination}")
                continue

            if entry.is_directory:
                operations.append(make_directory(entry.destination))
            else:
                operations.append(upload_file(entry.destination, entry.source))

            if not self.disable_permissions:
                operations.append(
                    set_permissions(entry.destination, entry.permissions)
                )

        stale = [
            path
            for path in remote_manifest
            if path not in local_manifest and path != ROOT_DESTINATION
        ]
        for path in sorted(stale, key=deletion_key, reverse=True):
            operations.append(delete_file(path))
            operations.append(delete_directory(path))

        logger.debug(
            f"Planned {len(operations)} operation(s), "
            f"{len(stale)} stale remote path(s)"
        )
        return operations
