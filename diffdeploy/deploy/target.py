"""Deploy target definition and JSON loading."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import DeployConfigError

VALID_PROTOCOLS = ("ftp", "sftp")


def normalize_remote_base(remote_base: str) -> str:
    """Drop trailing slashes but keep a leading one (absolute remote path)."""
    base = remote_base.rstrip("/")
    if not base:
        return "/" if remote_base.startswith("/") else "."
    return base


class TargetConfigError(DeployConfigError):
    """Raised when a deploy target definition is invalid."""


@dataclass
class DeployTarget:
    """Where and how to deploy.

    Examples:
        >>> target = DeployTarget(host="example.com", remote_base="/www/")
        >>> target.remote_base
        '/www'
    """

    host: str = "localhost"
    """Remote server host name"""

    remote_base: str = "."
    """Remote directory every path is relative to"""

    username: Optional[str] = None
    """Login name (prompted for when missing)"""

    password: Optional[str] = None
    """Password (prompted for when missing)"""

    disable_perms: bool = False
    """Do not propagate local permission bits"""

    protocol: str = "ftp"
    """Transfer protocol (ftp or sftp)"""

    port: Optional[int] = None
    """Server port (protocol default if not set)"""

    ignore: list[str] = field(default_factory=list)
    """Glob patterns of local paths to leave out"""

    def __post_init__(self) -> None:
        if not self.host:
            raise TargetConfigError("Deploy target needs a host")

        self.protocol = self.protocol.lower()
        if self.protocol not in VALID_PROTOCOLS:
            raise TargetConfigError(
                f"Invalid protocol '{self.protocol}'. "
                f"Valid protocols: {', '.join(VALID_PROTOCOLS)}"
            )

        self.remote_base = normalize_remote_base(self.remote_base)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeployTarget":
        """Create a deploy target from a dictionary with camelCase keys.

        Args:
            data: Dictionary such as
                ``{"host": "example.com", "remoteBase": "/www", "disablePerms": true}``

        Returns:
            DeployTarget instance

        Raises:
            TargetConfigError: If a value has the wrong type
        """
        if not isinstance(data, dict):
            raise TargetConfigError(f"Deploy target must be an object, got {data!r}")

        ignore = data.get("ignore", [])
        if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
            raise TargetConfigError("'ignore' must be a list of strings")

        port = data.get("port")
        if port is not None and not isinstance(port, int):
            raise TargetConfigError("'port' must be an integer")

        return cls(
            host=data.get("host", "localhost"),
            remote_base=data.get("remoteBase", "."),
            username=data.get("username"),
            password=data.get("password"),
            disable_perms=bool(data.get("disablePerms", False)),
            protocol=data.get("protocol", "ftp"),
            port=port,
            ignore=ignore,
        )


def load_targets_from_json(path: Union[str, Path]) -> list[DeployTarget]:
    """Load deploy targets from a JSON file.

    The file holds either a list of target objects or an object with a
    ``"targets"`` list.

    Args:
        path: Path to the JSON file

    Returns:
        List of DeployTarget objects

    Raises:
        TargetConfigError: If the file cannot be read or is malformed
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise TargetConfigError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise TargetConfigError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("targets")
    if not isinstance(data, list):
        raise TargetConfigError(f"{path} must contain a list of deploy targets")
    if not data:
        raise TargetConfigError(f"{path} does not define any deploy targets")

    return [DeployTarget.from_dict(item) for item in data]
