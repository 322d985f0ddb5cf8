"""Content and permission signatures for local entries."""

import hashlib
import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Iterable

from ..exceptions import LocalReadError
from .entries import Entry

logger = logging.getLogger(__name__)

Manifest = dict[str, str]
"""Mapping from destination path to signature hex digest"""

# Ceiling for simultaneous file reads while hashing
DEFAULT_MAX_WORKERS: int = 100

READ_CHUNK_SIZE: int = 64 * 1024


def compute_signature(entry: Entry) -> str:
    """Compute the signature of a single entry.

    The digest covers the octal permission string and, for files, the
    full file contents after it.

    Args:
        entry: Local entry to fingerprint

    Returns:
        SHA-1 hex digest

    Raises:
        LocalReadError: If the file cannot be read
    """
    sha = hashlib.sha1(usedforsecurity=False)
    sha.update(format(entry.permissions, "o").encode("ascii"))

    if entry.is_file:
        try:
            with open(entry.source, "rb") as f:
                for chunk in iter(lambda: f.read(READ_CHUNK_SIZE), b""):
                    sha.update(chunk)
        except OSError as e:
            raise LocalReadError(str(entry.source), e.strerror or str(e)) from e

    return sha.hexdigest()


class SignatureBuilder:
    """Builds the local manifest with bounded parallel hashing."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        """Initialize signature builder.

        Args:
            max_workers: Maximum number of files hashed at the same time
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers

    def build(self, entries: Iterable[Entry]) -> Manifest:
        """Compute the signature of every entry.

        Args:
            entries: Local entries

        Returns:
            Manifest keyed by destination path

        Raises:
            LocalReadError: If any file cannot be read; no partial
                manifest is returned
        """
        entries = list(entries)
        logger.info(f"Hashing {len(entries)} local entries...")
        manifest: Manifest = {}
        if not entries:
            return manifest

        workers = min(self.max_workers, len(entries))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(compute_signature, entry): entry for entry in entries
            }
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error
                manifest[futures[future].destination] = future.result()

        logger.info("Done hashing local entries")
        return manifest
