"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str

    # Deployment environment - "production" enables Secure/SameSite=None cookies
    app_env: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "ENV", "app_env"),
    )

    # Hex-encoded 32-byte key for session tokens (random per process if unset)
    auth_token_key: str | None = None

    # Secret for the OAuth state cookie (random per process if unset)
    session_secret: str | None = None

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    oauth_callback_url: str | None = None

    # Where the browser lands after a successful login
    frontend_url: str = "http://localhost:5173/"

    # CORS - the frontend sends cookies, so origins must be explicit
    cors_origins: list[str] | str = ["http://localhost:5173"]

    # Redis (rate limiting)
    redis_url: str = "redis://localhost:6379"
    redis_enabled: bool = True

    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string or a list of origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """True when running in the production environment."""
        return self.app_env.strip().lower() == "production"

    @property
    def google_enabled(self) -> bool:
        """Google login is available once client credentials are configured."""
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
