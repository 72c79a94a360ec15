"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class CatalogConfig(BaseSettings):
    """Visa catalog configuration. Unset paths fall back to the YAML shipped in visapath/config."""

    model_config = {"env_prefix": "VISAPATH_CATALOG_"}

    visa_types_dir: str | None = None
    countries_path: str | None = None


class AuthConfig(BaseSettings):
    """Authentication configuration."""

    model_config = {"env_prefix": "VISAPATH_AUTH_"}

    provider: str = "mock"
    fixtures_path: str | None = None
    token_expiry_minutes: int = 60


class DatabaseConfig(BaseSettings):
    """Database configuration. No URL means the in-memory journey store."""

    model_config = {"env_prefix": "VISAPATH_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class JourneyConfig(BaseSettings):
    """Journey state machine configuration."""

    model_config = {"env_prefix": "VISAPATH_JOURNEY_"}

    max_note_length: int = 1000
    max_write_retries: int = 3
    enforce_status_transitions: bool = False
    default_page_size: int = 10


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "VISAPATH_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    journey: JourneyConfig = Field(default_factory=JourneyConfig)
