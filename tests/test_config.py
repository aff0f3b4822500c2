"""Tests for environment driven settings."""

from py_planetgen.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MAX_TILE_COUNT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.default_tile_count == 1280
        assert settings.max_tile_count == 128000
        assert settings.cors_origins == ["*"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MAX_TILE_COUNT", "5000")
        monkeypatch.setenv("LOG_FORMAT", "console")
        settings = Settings(_env_file=None)
        assert settings.max_tile_count == 5000
        assert settings.log_format == "console"

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test,")
        settings = Settings(_env_file=None)
        assert settings.cors_origins == ["http://a.test", "http://b.test"]


class TestLoggingSetup:

    def test_configure_logging_from_utils(self):
        """``py_planetgen.utils`` is a namespace package; its modules still import."""
        import structlog

        from py_planetgen.utils.logging import configure_logging
        from py_planetgen.utils.random import resolve_seed

        try:
            configure_logging("WARNING", "console")
            assert structlog.is_configured()
        finally:
            structlog.reset_defaults()
        assert resolve_seed(42) == "42"
        assert len(resolve_seed()) == 8
