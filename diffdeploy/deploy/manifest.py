"""Persistence of the deployed manifest on the remote store.

The manifest of the last successful deployment is kept as a single JSON
file next to the deployed tree. It maps every destination path to its
signature and is the baseline the next deployment diffs against.
"""

import io
import json
import logging

from ..backends.base import RemoteSession
from ..exceptions import ManifestError, RemoteError, RemoteNotFoundError
from .signatures import Manifest

logger = logging.getLogger(__name__)

MANIFEST_NAME = "push-hashes"
"""Name of the manifest file inside the remote base directory"""


def encode_manifest(manifest: Manifest) -> bytes:
    """Serialize a manifest as stable JSON (sorted keys)."""
    return json.dumps(manifest, sort_keys=True, indent=2).encode("utf-8")


def decode_manifest(data: bytes) -> Manifest:
    """Parse a serialized manifest.

    Raises:
        ManifestError: If the data is not a JSON object of strings
    """
    try:
        manifest = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Invalid manifest: {e}") from e

    if not isinstance(manifest, dict) or not all(
        isinstance(key, str) and isinstance(value, str)
        for key, value in manifest.items()
    ):
        raise ManifestError("Invalid manifest: expected an object of strings")
    return manifest


class RemoteManifestStore:
    """Reads and writes the manifest through one remote session."""

    def __init__(self, session: RemoteSession, name: str = MANIFEST_NAME):
        """Initialize manifest store.

        Args:
            session: Session already positioned in the remote base directory
            name: Name of the manifest file
        """
        self.session = session
        self.name = name

    def fetch(self) -> Manifest:
        """Load the baseline manifest.

        Returns:
            The persisted manifest, or an empty one if nothing has been
            deployed yet

        Raises:
            ManifestError: If the manifest exists but cannot be read
        """
        try:
            data = self.session.read_file(self.name)
        except RemoteNotFoundError:
            logger.info(f"No manifest '{self.name}' found, starting from scratch")
            return {}
        except RemoteError as e:
            raise ManifestError(f"Cannot load manifest '{self.name}': {e}") from e

        manifest = decode_manifest(data)
        logger.info(f"Loaded manifest with {len(manifest)} entries")
        return manifest

    def persist(self, manifest: Manifest) -> None:
        """Overwrite the remote manifest.

        Raises:
            ManifestError: If the manifest cannot be written
        """
        try:
            self.session.write_file(self.name, io.BytesIO(encode_manifest(manifest)))
        except RemoteError as e:
            raise ManifestError(f"Cannot save manifest '{self.name}': {e}") from e
        logger.info(f"Saved manifest with {len(manifest)} entries")
