"""
Config Store - Handles the JSON credentials file
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from sportfrei.config import (
    CONFIG_FILE_NAME,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_CONFIG_DIR,
    ENV_REFRESH_TOKEN
)

logger = logging.getLogger(__name__)


def default_config_dir() -> Path:
    """~/.config/sportfrei unless SPORTFREI_CONFIG_DIR says otherwise"""
    override = os.getenv(ENV_CONFIG_DIR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "sportfrei"


@dataclass
class StravaCredentials:
    """Strava API application credentials plus the long-lived refresh token"""
    client_id: str
    client_secret: str
    refresh_token: str = ""

    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'StravaCredentials':
        """Create from dictionary"""
        return cls(
            client_id=str(data.get("client_id") or ""),
            client_secret=str(data.get("client_secret") or ""),
            refresh_token=str(data.get("refresh_token") or "")
        )


class ConfigStore:
    """Manages the local credentials file"""

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigStore

        Args:
            config_dir: Directory holding config.json (created on first save)
        """
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config_file = self.config_dir / CONFIG_FILE_NAME

    def _read_file(self) -> Dict:
        """Raw file contents without environment overrides; {} if missing or unreadable"""
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error loading config file %s: %s", self.config_file, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: expected a JSON object", self.config_file)
            return {}
        return data

    def _write_file(self, data: Dict) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            json.dump(data, f, indent=2)
        os.chmod(self.config_file, 0o600)
        logger.info("Saved config to %s", self.config_file)

    def load(self) -> Optional[StravaCredentials]:
        """
        Load credentials from disk, overlaid with environment variables

        Returns:
            StravaCredentials, or None if neither the file nor the environment
            provide a client id
        """
        data = self._read_file()

        env_overrides = {
            "client_id": os.getenv(ENV_CLIENT_ID),
            "client_secret": os.getenv(ENV_CLIENT_SECRET),
            "refresh_token": os.getenv(ENV_REFRESH_TOKEN)
        }
        for key, value in env_overrides.items():
            if value and value.strip():
                data[key] = value.strip()

        if not data.get("client_id"):
            return None
        return StravaCredentials.from_dict(data)

    def save(self, credentials: StravaCredentials) -> None:
        """Save credentials to JSON, readable by the owner only"""
        self._write_file(credentials.to_dict())

    def update_refresh_token(self, refresh_token: str) -> None:
        """
        Persist a rotated refresh token, leaving the rest of the file as written

        Nothing is saved while STRAVA_REFRESH_TOKEN is set, since that value
        would shadow the file on the next start anyway.
        """
        env_token = (os.getenv(ENV_REFRESH_TOKEN) or "").strip()
        if env_token:
            if env_token != refresh_token:
                logger.warning(
                    "Strava rotated the refresh token but %s is set; update it to keep signing in",
                    ENV_REFRESH_TOKEN
                )
            return

        data = self._read_file()
        if not data:
            logger.warning("No config file to update with rotated refresh token")
            return
        if data.get("refresh_token") == refresh_token:
            return
        data["refresh_token"] = refresh_token
        self._write_file(data)
