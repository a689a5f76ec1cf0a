"""
API key and rate-limit state shared by every consumer.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from typing import Optional

from nasa_explorer.config import API_KEY_STORAGE_KEY, Config, deployment_api_key
from nasa_explorer.models import DEMO_KEY, APIKeyRecord, RateLimitSnapshot

_LOG = logging.getLogger(__name__)


class APIKeyStore:
    """
    Holds the active API key and the latest rate-limit snapshot.

    One instance is created at startup and handed to every consumer. The store
    never looks at HTTP responses; consumers call record_rate_limit() after
    reading the headers themselves.
    """

    def __init__(self, config: Config, deployment_key: Optional[str] = None):
        self._config = config
        self._deployment_key = deployment_key
        self._record = APIKeyRecord(DEMO_KEY)
        self._rate_limit: Optional[RateLimitSnapshot] = None

    def initialize(self) -> str:
        """Resolve the key: deployment value, then saved user key, then DEMO_KEY."""
        deployment_key = self._deployment_key or deployment_api_key()
        if deployment_key:
            self._record = APIKeyRecord(deployment_key)
            _LOG.info("Using API key from deployment configuration")
            return self._record.value

        saved_key = self._config.saved_api_key
        if saved_key and saved_key != DEMO_KEY:
            self._record = APIKeyRecord(saved_key)
            _LOG.info("Using saved API key")
        else:
            self._record = APIKeyRecord(DEMO_KEY)
            _LOG.warning("No API key configured, falling back to %s", DEMO_KEY)
        return self._record.value

    def set_key(self, new_value: str) -> None:
        """Replace the current key and persist or clear the user override."""
        new_value = (new_value or "").strip() or DEMO_KEY
        self._record = APIKeyRecord(new_value)

        if new_value == DEMO_KEY:
            self._config.remove(API_KEY_STORAGE_KEY)
            _LOG.info("API key reset to %s", DEMO_KEY)
        else:
            self._config.set(API_KEY_STORAGE_KEY, new_value)
            _LOG.info("API key updated")

    def record_rate_limit(self, remaining: int, limit: int, reset_time: str) -> None:
        """Overwrite the snapshot. Last write wins regardless of request order."""
        self._rate_limit = RateLimitSnapshot(remaining=remaining, limit=limit, reset_time=reset_time)
        _LOG.debug("Rate limit: %d/%d remaining", remaining, limit)

    def is_fallback(self) -> bool:
        return self._record.is_fallback

    @property
    def api_key(self) -> str:
        return self._record.value

    @property
    def record(self) -> APIKeyRecord:
        return self._record

    @property
    def rate_limit(self) -> Optional[RateLimitSnapshot]:
        return self._rate_limit
