"""Configuration defaults from the environment and the user config file."""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "DIFFDEPLOY_"

# Keys recognized in the config file and (prefixed) in the environment
CONFIG_KEYS = ("HOST", "USERNAME", "PASSWORD", "REMOTE_BASE", "PROTOCOL", "PORT")


class Config:
    """Default connection settings.

    Environment variables (``DIFFDEPLOY_HOST``, ``DIFFDEPLOY_USERNAME``, ...)
    take precedence over the config file at ``~/.config/diffdeploy/config``,
    which holds ``KEY=VALUE`` lines.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ``$XDG_CONFIG_HOME/diffdeploy`` or ``~/.config/diffdeploy``
        """
        if config_dir is None:
            xdg = os.environ.get("XDG_CONFIG_HOME", "")
            base = Path(xdg) if xdg else Path.home() / ".config"
            config_dir = base / "diffdeploy"
        self.config_dir = config_dir
        self._file_values: Optional[dict[str, str]] = None

    def get_config_path(self) -> Path:
        return self.config_dir / "config"

    def _load_file(self) -> dict[str, str]:
        if self._file_values is not None:
            return self._file_values

        values: dict[str, str] = {}
        path = self.get_config_path()
        if path.is_file():
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError as e:
                logger.warning(f"Cannot read config file {path}: {e}")
                lines = []
            for number, line in enumerate(lines, start=1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                key, sep, value = line.partition("=")
                if not sep:
                    logger.warning(f"{path}:{number}: expected KEY=VALUE")
                    continue
                key = key.strip().upper()
                if key.startswith(ENV_PREFIX):
                    key = key[len(ENV_PREFIX) :]
                values[key] = value.strip().strip("\"'")

        self._file_values = values
        return values

    def get(self, key: str) -> Optional[str]:
        """Look up a setting by key (e.g. "HOST")."""
        key = key.upper()
        env_value = os.environ.get(ENV_PREFIX + key)
        if env_value:
            return env_value
        return self._load_file().get(key)

    @property
    def host(self) -> Optional[str]:
        return self.get("HOST")

    @property
    def username(self) -> Optional[str]:
        return self.get("USERNAME")

    @property
    def password(self) -> Optional[str]:
        return self.get("PASSWORD")

    @property
    def remote_base(self) -> Optional[str]:
        return self.get("REMOTE_BASE")

    @property
    def protocol(self) -> Optional[str]:
        return self.get("PROTOCOL")

    @property
    def port(self) -> Optional[int]:
        value = self.get("PORT")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring invalid port setting: {value!r}")
            return None

    def is_configured(self) -> bool:
        """True if a host is configured."""
        return bool(self.host)


config = Config()
