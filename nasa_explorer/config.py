"""
Configuration management for NASA Explorer.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

_LOG = logging.getLogger(__name__)

NASA_API_URL = "https://api.nasa.gov"
NASA_IMAGES_URL = "https://images-api.nasa.gov"
EONET_URL = "https://eonet.gsfc.nasa.gov/api/v3"
OSDR_URL = "https://osdr.nasa.gov"

# Storage key of the user-supplied API key.
API_KEY_STORAGE_KEY = "nasa_api_key"

DEPLOYMENT_KEY_ENV_VARS = ("NASA_EXPLORER_API_KEY", "NASA_API_KEY")
CONFIG_PATH_ENV_VAR = "NASA_EXPLORER_CONFIG"

DEFAULT_CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".nasa_explorer", "config.json")

SHORT_TIMEOUT = 10      # seconds, single-record lookups
LONG_TIMEOUT = 30       # seconds, search and listing endpoints
OSDR_RETRY_DELAY = 2.0  # seconds

# Hourly request quotas quoted in rate-limit errors. None means undocumented.
RATE_LIMIT_QUOTAS: Dict[str, Optional[int]] = {
    "apod": 1000,
    "mars_photos": 1000,
    "neo": 1000,
    "insight": 1000,
    "techtransfer": 1000,
    "epic": 1000,
    "images": None,
    "eonet": None,
    "osdr": None,
}
DEMO_KEY_HOURLY_QUOTA = 30

DEFAULT_CONFIG: Dict[str, Any] = {
    "short_timeout": SHORT_TIMEOUT,
    "long_timeout": LONG_TIMEOUT,
    "osdr_retry_delay": OSDR_RETRY_DELAY,
}


def default_config_path() -> str:
    """Config file location, overridable through the environment."""
    return os.environ.get(CONFIG_PATH_ENV_VAR) or DEFAULT_CONFIG_PATH


def deployment_api_key() -> Optional[str]:
    """Return the API key supplied by the deployment environment, if any."""
    for name in DEPLOYMENT_KEY_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


class Config:
    """JSON file backed configuration and key storage."""

    def __init__(self, config_file_path: Optional[str] = None):
        """Initialize configuration."""
        self._config_file_path = config_file_path or default_config_path()
        self._config: Dict[str, Any] = {}
        self.load()

    @property
    def path(self) -> str:
        return self._config_file_path

    def load(self) -> None:
        """Load configuration from file."""
        try:
            if os.path.exists(self._config_file_path):
                with open(self._config_file_path, "r", encoding="utf-8") as file:
                    data = json.load(file)
                if isinstance(data, dict):
                    self._config = data
                    _LOG.info("Configuration loaded from %s", self._config_file_path)
                else:
                    _LOG.error("Configuration in %s is not an object, using defaults", self._config_file_path)
                    self._config = DEFAULT_CONFIG.copy()
            else:
                _LOG.info("Configuration file not found, using defaults")
                self._config = DEFAULT_CONFIG.copy()
        except (OSError, ValueError) as ex:
            _LOG.error("Failed to load configuration: %s", ex)
            self._config = DEFAULT_CONFIG.copy()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            directory = os.path.dirname(self._config_file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self._config_file_path, "w", encoding="utf-8") as file:
                json.dump(self._config, file, indent=2)
                _LOG.info("Configuration saved to %s", self._config_file_path)
        except OSError as ex:
            _LOG.error("Failed to save configuration: %s", ex)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value and persist it."""
        self._config[key] = value
        self.save()

    def remove(self, key: str) -> None:
        """Remove a configuration value and persist the change."""
        if self._config.pop(key, None) is not None:
            self.save()

    def update(self, data: Dict[str, Any]) -> None:
        """Update configuration with new data."""
        self._config.update(data)
        self.save()

    @property
    def saved_api_key(self) -> Optional[str]:
        """User-supplied API key persisted from an earlier session."""
        return self._config.get(API_KEY_STORAGE_KEY) or None

    @property
    def short_timeout(self) -> float:
        return float(self._config.get("short_timeout", SHORT_TIMEOUT))

    @property
    def long_timeout(self) -> float:
        return float(self._config.get("long_timeout", LONG_TIMEOUT))

    @property
    def osdr_retry_delay(self) -> float:
        return float(self._config.get("osdr_retry_delay", OSDR_RETRY_DELAY))

    def rate_limit_quota(self, endpoint: str) -> Optional[int]:
        """Hourly quota for an endpoint group, config overrides first."""
        overrides = self._config.get("rate_limit_quotas") or {}
        if endpoint in overrides:
            return overrides[endpoint]
        return RATE_LIMIT_QUOTAS.get(endpoint)
