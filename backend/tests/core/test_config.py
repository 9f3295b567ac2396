"""Tests for application configuration."""
import pytest

from core.config import Settings


def _settings(**kwargs: object) -> Settings:
    return Settings(_env_file=None, database_url="postgresql://test", **kwargs)


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        """Single origin string is parsed correctly."""
        assert _settings(cors_origins="http://localhost:5173").cors_origins == [
            "http://localhost:5173",
        ]

    def test_parse_origins_with_whitespace_and_trailing_comma(self) -> None:
        """Whitespace is stripped and empty entries are dropped."""
        settings = _settings(cors_origins="  http://localhost:5173 , https://budget.example.com, ")
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://budget.example.com",
        ]

    def test_parse_origins_list_passthrough(self) -> None:
        """List of origins is passed through unchanged."""
        origins = ["http://localhost:5173", "https://budget.example.com"]
        assert _settings(cors_origins=origins).cors_origins == origins

    def test_parse_empty_string(self) -> None:
        """Empty string results in empty list."""
        assert _settings(cors_origins="").cors_origins == []

    def test_default_cors_origins(self) -> None:
        """Default CORS origins is the local frontend."""
        assert _settings().cors_origins == ["http://localhost:5173"]


class TestEnvironment:
    """Tests for deployment environment detection."""

    @pytest.mark.parametrize("value", ["production", "Production", " PRODUCTION "])
    def test_is_production_matches_case_insensitively(self, value: str) -> None:
        assert _settings(app_env=value).is_production is True

    @pytest.mark.parametrize("value", ["development", "staging", "prod", ""])
    def test_other_environments_are_not_production(self, value: str) -> None:
        assert _settings(app_env=value).is_production is False

    def test_reads_app_env_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        assert _settings().is_production is True

    def test_reads_env_variable_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """ENV is honored when APP_ENV is not set."""
        monkeypatch.delenv("APP_ENV", raising=False)
        monkeypatch.setenv("ENV", "production")
        assert _settings().is_production is True

    def test_defaults_to_development(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APP_ENV", raising=False)
        monkeypatch.delenv("ENV", raising=False)
        settings = _settings()
        assert settings.app_env == "development"
        assert settings.is_production is False


class TestAuthConfig:
    """Tests for token key and OAuth settings."""

    def test_auth_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without configuration the key is unset and Google login is disabled."""
        for name in ("AUTH_TOKEN_KEY", "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"):
            monkeypatch.delenv(name, raising=False)
        settings = _settings()
        assert settings.auth_token_key is None
        assert settings.google_enabled is False
        assert settings.frontend_url == "http://localhost:5173/"

    def test_auth_token_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTH_TOKEN_KEY", "ab" * 32)
        assert _settings().auth_token_key == "ab" * 32

    def test_google_enabled_requires_id_and_secret(self) -> None:
        assert _settings(google_client_id="id").google_enabled is False
        assert _settings(google_client_secret="secret").google_enabled is False
        assert _settings(
            google_client_id="id", google_client_secret="secret",
        ).google_enabled is True
