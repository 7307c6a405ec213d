"""Configuration Context: defaults, credentials, validation."""

import dataclasses

import pytest

from core.config import Settings, load_settings
from core.errors import ConfigError


def test_defaults_from_empty_environment():
    settings = load_settings({})
    assert settings.google_api_key is None
    assert settings.google_enabled is False
    assert settings.search_cache_max == 500
    assert settings.search_cache_ttl_s == 1800
    assert settings.wikipedia_cache_max == 100
    assert settings.wikipedia_cache_ttl_s == 300
    assert settings.default_language == "en"
    assert settings.retry_attempts == 3
    assert settings.request_timeout_s == 10.0


def test_google_enabled_needs_both_credentials():
    assert load_settings({"GOOGLE_API_KEY": "k", "GOOGLE_CSE_ID": "c"}).google_enabled
    assert not load_settings({"GOOGLE_API_KEY": "k"}).google_enabled
    assert not load_settings({"GOOGLE_API_KEY": "k", "GOOGLE_CSE_ID": "  "}).google_enabled


def test_overrides():
    settings = load_settings({
        "SEARCH_CACHE_MAX": "50",
        "WIKIPEDIA_CACHE_TTL": "12.5",
        "WIKIPEDIA_DEFAULT_LANGUAGE": "DE",
        "LOG_LEVEL": "debug",
    })
    assert settings.search_cache_max == 50
    assert settings.wikipedia_cache_ttl_s == 12.5
    assert settings.default_language == "de"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("env", [
    {"SEARCH_CACHE_MAX": "lots"},
    {"SEARCH_CACHE_MAX": "0"},
    {"WIKIPEDIA_CACHE_TTL": "-1"},
    {"REQUEST_TIMEOUT": "soon"},
    {"WIKIPEDIA_DEFAULT_LANGUAGE": "english!"},
])
def test_malformed_values_raise(env):
    with pytest.raises(ConfigError):
        load_settings(env)


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.default_language = "fr"
