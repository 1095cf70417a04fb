"""User configuration for pykvsites.

Credentials are read from environment variables first and then from
``~/.config/pykvsites/config``, a simple ``KEY=VALUE`` file.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"

_TRUTHY = {"1", "true", "yes", "on"}


class Config:
    """Resolves API credentials and account capabilities."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pykvsites/
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pykvsites"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.exists():
            return {}

        values: dict[str, str] = {}
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip('"')
        return values

    def _get(self, name: str) -> Optional[str]:
        value = os.environ.get(name)
        if value:
            return value
        return self._read_file().get(name)

    @property
    def api_key(self) -> Optional[str]:
        """API key or token."""
        return self._get("KVSITES_API_KEY")

    @property
    def email(self) -> Optional[str]:
        """Account email, required together with a global API key."""
        return self._get("KVSITES_EMAIL")

    @property
    def api_url(self) -> str:
        """Base URL of the REST API."""
        return self._get("KVSITES_API_URL") or DEFAULT_API_URL

    @property
    def multiscript(self) -> bool:
        """Whether the account can deploy more than one script."""
        value = self._get("KVSITES_MULTISCRIPT")
        return value is not None and value.lower() in _TRUTHY

    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return bool(self.api_key)

    def save_credentials(self, api_key: str, email: Optional[str] = None) -> None:
        """Store credentials in the config file.

        Existing unrelated entries are preserved.

        Args:
            api_key: API key or token
            email: Account email for global API keys
        """
        values = self._read_file()
        values["KVSITES_API_KEY"] = api_key
        if email:
            values["KVSITES_EMAIL"] = email
        else:
            values.pop("KVSITES_EMAIL", None)

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        with open(path, "w", encoding="utf-8") as f:
            for key in sorted(values):
                f.write(f"{key}={values[key]}\n")
        path.chmod(0o600)
        logger.debug(f"Saved credentials to {path}")


config = Config()
