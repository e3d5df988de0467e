"""Tests for PortalServerSettings configuration."""

import pytest
from pydantic import ValidationError

from portal.server.settings import PortalServerSettings


class TestPortalServerSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PORTAL_CORS_ORIGINS", raising=False)
        settings = PortalServerSettings()

        assert settings.cors_origins == []
        assert settings.rate_limit_window_seconds == 900
        assert settings.rate_limit_max_requests == 25_000
        assert settings.admin_api_auth is True

    def test_cors_origins_from_csv_env(self, monkeypatch):
        monkeypatch.setenv("PORTAL_CORS_ORIGINS", "http://a.test, http://b.test")
        assert PortalServerSettings().cors_origins == ["http://a.test", "http://b.test"]

    def test_cors_origins_from_json_env(self, monkeypatch):
        monkeypatch.setenv("PORTAL_CORS_ORIGINS", '["http://a.test"]')
        assert PortalServerSettings().cors_origins == ["http://a.test"]

    def test_admin_api_auth_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("PORTAL_ADMIN_API_AUTH", "false")
        assert PortalServerSettings().admin_api_auth is False

    def test_rate_limit_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("PORTAL_RATE_LIMIT_MAX_REQUESTS", "0")
        with pytest.raises(ValidationError, match="rate_limit_max_requests"):
            PortalServerSettings()
