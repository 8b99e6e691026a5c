"""Tests for settings and logging setup."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from account_sync.app import create_app
from account_sync.config import Settings
from account_sync.logging_config import setup_logging


class TestSettings:
    def test_missing_secret_is_fatal(self, monkeypatch):
        monkeypatch.delenv("WEBHOOK_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_blank_secret_is_fatal(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "   ")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    @pytest.mark.parametrize("secret", ["whsec_not*base64!", "whsec_abc", "plain-text secret"])
    def test_malformed_secret_is_fatal(self, monkeypatch, secret):
        monkeypatch.setenv("WEBHOOK_SECRET", secret)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_create_app_refuses_to_start_with_malformed_secret(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "whsec_not*base64!")
        monkeypatch.chdir("/")
        with pytest.raises(ValidationError):
            create_app()

    def test_create_app_refuses_to_start_without_secret(self, monkeypatch):
        monkeypatch.delenv("WEBHOOK_SECRET", raising=False)
        monkeypatch.chdir("/")
        with pytest.raises(ValidationError):
            create_app()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "whsec_ZW52LXNlY3JldA==")
        monkeypatch.setenv("DEDUP_ENABLED", "false")
        monkeypatch.setenv("WEBHOOK_TOLERANCE_SECONDS", "60")
        settings = Settings(_env_file=None)
        assert settings.webhook_secret == "whsec_ZW52LXNlY3JldA=="
        assert settings.dedup_enabled is False
        assert settings.webhook_tolerance_seconds == 60

    def test_defaults(self, settings):
        assert settings.dedup_ttl_seconds == 86400
        assert settings.webhook_tolerance_seconds == 300
        assert settings.account_api_timeout == 10.0


class TestCreateApp:
    def test_state_is_wired(self, settings):
        app = create_app(settings)
        assert app.state.settings is settings
        assert app.state.deduplicator.enabled is True
        paths = {route.path for route in app.routes}
        assert "/api/webhooks/clerk" in paths
        assert "/health" in paths


class TestLogging:
    def test_setup_logging_sets_level(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("debug")
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

    def test_unknown_level_falls_back_to_info(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("chatty")
            assert root.level == logging.INFO
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)
