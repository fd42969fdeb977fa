"""Tests for Settings parsing."""

import pytest
from pydantic import ValidationError

from core.config import Settings


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, database_url="postgresql://localhost/db", **kwargs)


class TestSettings:
    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.port == 8000
        assert settings.session_ttl_seconds == 3600
        assert settings.suggestion_pool_limit == 50
        assert settings.is_development
        assert settings.cors_origins == ["http://localhost:3000"]

    def test_log_level_normalized(self) -> None:
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_falls_back(self) -> None:
        assert _settings(log_level="chatty").log_level == "INFO"

    def test_production(self) -> None:
        settings = _settings(environment="Production")
        assert settings.is_production
        assert not settings.is_development

    def test_pool_limit_bounds(self) -> None:
        with pytest.raises(ValidationError):
            _settings(suggestion_pool_limit=0)

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_SESSIONS", "12")
        assert _settings().max_sessions == 12
