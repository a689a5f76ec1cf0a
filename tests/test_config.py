"""Tests for nasa_explorer/config.py: JSON config file and defaults."""

import json

import pytest

from nasa_explorer.config import (
    LONG_TIMEOUT,
    SHORT_TIMEOUT,
    Config,
    default_config_path,
    deployment_api_key,
)
from nasa_explorer.keystore import APIKeyStore
from nasa_explorer.models import DEMO_KEY


def test_missing_file_uses_defaults(tmp_path):
    config = Config(str(tmp_path / "missing.json"))
    assert config.short_timeout == SHORT_TIMEOUT
    assert config.long_timeout == LONG_TIMEOUT
    assert config.saved_api_key is None


def test_invalid_json_uses_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    config = Config(str(path))
    assert config.short_timeout == SHORT_TIMEOUT


@pytest.mark.parametrize("content", ["[]", '"x"', "42", "null"])
def test_non_object_json_uses_defaults(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    config = Config(str(path))
    assert config.saved_api_key is None
    assert config.short_timeout == SHORT_TIMEOUT
    assert APIKeyStore(config).initialize() == DEMO_KEY


def test_update_saves_file(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = Config(str(path))
    config.update({"short_timeout": 5})
    assert json.loads(path.read_text(encoding="utf-8"))["short_timeout"] == 5
    assert Config(str(path)).short_timeout == 5.0


def test_remove(config, config_path):
    config.set("nasa_api_key", "abc")
    config.remove("nasa_api_key")
    assert config.get("nasa_api_key") is None
    with open(config_path, encoding="utf-8") as file:
        assert "nasa_api_key" not in json.load(file)


def test_rate_limit_quota_defaults_and_overrides(config):
    assert config.rate_limit_quota("apod") == 1000
    assert config.rate_limit_quota("eonet") is None
    config.update({"rate_limit_quotas": {"eonet": 500}})
    assert config.rate_limit_quota("eonet") == 500
    assert config.rate_limit_quota("unknown") is None


def test_deployment_key_env_priority(monkeypatch):
    assert deployment_api_key() is None
    monkeypatch.setenv("NASA_API_KEY", "generic")
    assert deployment_api_key() == "generic"
    monkeypatch.setenv("NASA_EXPLORER_API_KEY", "specific")
    assert deployment_api_key() == "specific"


def test_config_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("NASA_EXPLORER_CONFIG", str(tmp_path / "c.json"))
    assert default_config_path() == str(tmp_path / "c.json")
