"""Tests for signing-secret resolution."""

import logging

import pytest

from mutabaah.errors import ConfigurationError
from mutabaah.settings import Settings
from mutabaah.tokens import TokenCodec, resolve_signing_secret
from mutabaah.tokens import config as token_config


def setup_function():
    """Reset the once-per-process fallback warning flag."""
    token_config._fallback_warned = False


@pytest.fixture(autouse=True)
def no_secret_in_env(monkeypatch):
    # The suite configures a secret for the app; these tests build their own Settings.
    monkeypatch.delenv("APP_JWT_SECRET", raising=False)
    monkeypatch.delenv("JWT_SECRET", raising=False)


def _settings(**kwargs) -> Settings:
    return Settings(**kwargs)


def test_configured_secret_is_used():
    settings = _settings(environment="production", jwt_secret="prod-secret-0123456789-abcdefghijklmn")
    assert resolve_signing_secret(settings) == "prod-secret-0123456789-abcdefghijklmn"


def test_bare_jwt_secret_env_var_is_honoured(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "legacy-secret-0123456789-abcdefghijklmn")
    assert resolve_signing_secret(_settings(environment="production")) == "legacy-secret-0123456789-abcdefghijklmn"


def test_production_without_secret_refuses():
    settings = _settings(environment="production")

    with pytest.raises(ConfigurationError):
        resolve_signing_secret(settings)
    with pytest.raises(ConfigurationError):
        TokenCodec.from_settings(settings)


def test_blank_secret_counts_as_missing():
    with pytest.raises(ConfigurationError):
        resolve_signing_secret(_settings(environment="production", jwt_secret="   "))


def test_development_falls_back_and_warns_once(caplog):
    settings = _settings(environment="development")

    with caplog.at_level(logging.WARNING, logger="mutabaah.tokens.config"):
        first = resolve_signing_secret(settings)
        second = resolve_signing_secret(settings)

    assert first == second == token_config.DEV_FALLBACK_SECRET
    warnings = [r for r in caplog.records if "fallback" in r.getMessage()]
    assert len(warnings) == 1


def test_ttl_comes_from_settings():
    codec = TokenCodec.from_settings(_settings(jwt_secret="s" * 40, session_ttl_seconds=120))
    assert codec.ttl_seconds == 120
