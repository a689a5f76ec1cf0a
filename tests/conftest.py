"""Shared fixtures for the NASA Explorer test suite."""

import copy
import json

import pytest

from nasa_explorer.client import NASAClient
from nasa_explorer.config import DEPLOYMENT_KEY_ENV_VARS, Config


class FakeResponse:
    """Stand-in for an aiohttp response used as an async context manager."""

    def __init__(self, status=200, payload=None, headers=None, text=None):
        self.status = status
        self.headers = headers or {}
        self._payload = payload
        self._text = text

    async def json(self, content_type="application/json"):
        if self._text is not None:
            return json.loads(self._text)
        return copy.deepcopy(self._payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records GET calls and replays queued outcomes; the last one repeats."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """No deployment key leaks in from the developer's shell."""
    for name in DEPLOYMENT_KEY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.json")


@pytest.fixture
def config(config_path) -> Config:
    cfg = Config(config_path)
    cfg.update({"osdr_retry_delay": 0})
    return cfg


@pytest.fixture
def make_client(config):
    """Factory fixture: build a client whose session replays the given outcomes.

    Usage:
        client, session = make_client(FakeResponse(200, {"photos": []}))
    """
    def _make(*outcomes, on_response_headers=None):
        session = FakeSession(*outcomes)
        client = NASAClient(config, on_response_headers=on_response_headers)
        client._session = session
        return client, session

    return _make
