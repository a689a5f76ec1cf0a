"""Tests for nasa_explorer/keystore.py: API key resolution and rate-limit state."""

import json

from nasa_explorer.config import Config
from nasa_explorer.keystore import APIKeyStore
from nasa_explorer.models import DEMO_KEY, RateLimitSnapshot


class TestInitialize:

    def test_defaults_to_demo_key(self, config):
        store = APIKeyStore(config)
        assert store.initialize() == DEMO_KEY
        assert store.is_fallback()
        assert store.rate_limit is None

    def test_deployment_key_wins_over_saved_key(self, config):
        config.set("nasa_api_key", "saved-key")
        store = APIKeyStore(config, deployment_key="deploy-key")
        assert store.initialize() == "deploy-key"
        assert not store.is_fallback()

    def test_deployment_key_from_environment(self, config, monkeypatch):
        monkeypatch.setenv("NASA_API_KEY", "env-key")
        config.set("nasa_api_key", "saved-key")
        assert APIKeyStore(config).initialize() == "env-key"

    def test_saved_key_used_without_deployment_key(self, config_path):
        Config(config_path).set("nasa_api_key", "saved-key")
        store = APIKeyStore(Config(config_path))
        assert store.initialize() == "saved-key"

    def test_saved_demo_key_is_ignored(self, config):
        config.set("nasa_api_key", DEMO_KEY)
        assert APIKeyStore(config).initialize() == DEMO_KEY


class TestSetKey:

    def test_persists_user_key(self, config_path):
        store = APIKeyStore(Config(config_path))
        store.set_key("user-key")

        assert store.api_key == "user-key"
        with open(config_path, encoding="utf-8") as file:
            assert json.load(file)["nasa_api_key"] == "user-key"

        fresh = APIKeyStore(Config(config_path))
        assert fresh.initialize() == "user-key"

    def test_demo_key_clears_override(self, config_path):
        store = APIKeyStore(Config(config_path))
        store.set_key("user-key")
        store.set_key(DEMO_KEY)

        fresh = APIKeyStore(Config(config_path))
        assert fresh.initialize() == DEMO_KEY
        assert fresh.is_fallback()

    def test_blank_key_means_demo_key(self, config):
        store = APIKeyStore(config)
        store.set_key("user-key")
        store.set_key("   ")
        assert store.is_fallback()
        assert config.saved_api_key is None

    def test_replaces_record_wholesale(self, config):
        store = APIKeyStore(config)
        before = store.record
        store.set_key("user-key")
        assert store.record is not before
        assert before.value == DEMO_KEY


class TestRateLimit:

    def test_record_overwrites_snapshot(self, config):
        store = APIKeyStore(config)
        store.record_rate_limit(999, 1000, "3600")
        assert store.rate_limit == RateLimitSnapshot(remaining=999, limit=1000, reset_time="3600")

    def test_last_write_wins(self, config):
        store = APIKeyStore(config)
        # A newer request resolves first, then an older, slower one.
        store.record_rate_limit(950, 1000, "t2")
        store.record_rate_limit(980, 1000, "t1")
        assert store.rate_limit.remaining == 980
        assert store.rate_limit.reset_time == "t1"

    def test_not_persisted(self, config_path):
        store = APIKeyStore(Config(config_path))
        store.record_rate_limit(10, 40, "")
        assert APIKeyStore(Config(config_path)).rate_limit is None
