"""Tests for environment-driven Settings."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
from pydantic import ValidationError

from homegame.config import Settings


class TestSettings:

    def test_ledger_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_MAX_ATTEMPTS", raising=False)
        monkeypatch.delenv("SETTLEMENT_TOLERANCE_CENTS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.LEDGER_MAX_ATTEMPTS == 5
        assert settings.SETTLEMENT_TOLERANCE_CENTS == 100
        assert settings.DATABASE_NAME == "homegame"

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_MAX_ATTEMPTS", "9")
        monkeypatch.setenv("WATCH_TIMEOUT_SECONDS", "2.5")
        settings = Settings(_env_file=None)
        assert settings.LEDGER_MAX_ATTEMPTS == 9
        assert settings.WATCH_TIMEOUT_SECONDS == 2.5

    def test_max_attempts_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("LEDGER_MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_jwt_secret_dev_default(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "")
        monkeypatch.delenv("RAILWAY_ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.JWT_SECRET

    def test_jwt_secret_required_in_production(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "")
        monkeypatch.setenv("RAILWAY_ENVIRONMENT", "production")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_cors_origins_parsing(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
        settings = Settings(_env_file=None)
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    def test_cors_wildcard(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "*")
        assert Settings(_env_file=None).cors_origins == ["*"]
