"""Configuration management for the TinyCDN client.

Settings are read from environment variables first and then from a simple
``key=value`` file at ``~/.config/pytinycdn/config``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .utils import DEFAULT_API_URL, DEFAULT_TIMEOUT

ENV_API_TOKEN = "TINYCDN_API_TOKEN"
ENV_API_URL = "TINYCDN_API_URL"
ENV_VERIFY_SSL = "TINYCDN_VERIFY_SSL"
ENV_TIMEOUT = "TINYCDN_TIMEOUT"
ENV_TRANSPORT = "TINYCDN_TRANSPORT"
ENV_CONFIG_PATH = "TINYCDN_CONFIG"

_FALSE_VALUES = ("0", "false", "no", "off")


class Config:
    """Configuration for TinyCDN API access."""

    def get_config_path(self) -> Path:
        """Return the path of the configuration file."""
        override = os.environ.get(ENV_CONFIG_PATH)
        if override:
            return Path(override).expanduser()
        return Path.home() / ".config" / "pytinycdn" / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.is_file():
            return {}

        values: dict[str, str] = {}
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip('"').strip("'")
        return values

    def _get(self, env_name: str) -> Optional[str]:
        value = os.environ.get(env_name)
        if value:
            return value
        return self._read_file().get(env_name)

    @property
    def api_token(self) -> Optional[str]:
        return self._get(ENV_API_TOKEN)

    @property
    def api_url(self) -> str:
        return self._get(ENV_API_URL) or DEFAULT_API_URL

    @property
    def verify_ssl(self) -> bool:
        value = self._get(ENV_VERIFY_SSL)
        if value is None:
            return True
        return value.strip().lower() not in _FALSE_VALUES

    @property
    def timeout(self) -> float:
        value = self._get(ENV_TIMEOUT)
        try:
            return float(value) if value else DEFAULT_TIMEOUT
        except ValueError:
            return DEFAULT_TIMEOUT

    @property
    def transport(self) -> str:
        return self._get(ENV_TRANSPORT) or "auto"

    def is_configured(self) -> bool:
        """Check whether an API token is available."""
        return bool(self.api_token)

    def save_api_token(self, api_token: str) -> None:
        """Store the API token in the configuration file.

        Other keys already present in the file are kept. The file is only
        readable by the current user.

        Args:
            api_token: API token to store
        """
        path = self.get_config_path()
        values = self._read_file()
        values[ENV_API_TOKEN] = api_token

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for key, value in values.items():
                f.write(f"{key}={value}\n")
        path.chmod(0o600)


config = Config()
