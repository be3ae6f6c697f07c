from typing import Final

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_ADMISSION_MAX_ATTEMPTS,
    DEFAULT_METRICS_PORT,
    DEFAULT_PORT,
)
from .domain.constants import ANONYMOUS_AUTHOR


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./whitecollar.db", description="Database connection URL"
    )

    # Application configuration
    app_name: str = Field(default="WhiteCollar", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Catalog configuration
    anonymous_author: str = Field(
        default=ANONYMOUS_AUTHOR,
        min_length=1,
        description="Author stored for pictures submitted without one",
    )
    admission_max_attempts: int = Field(
        default=DEFAULT_ADMISSION_MAX_ATTEMPTS,
        ge=1,
        description="Attempts made when a picture id collides with a concurrent write",
    )

    # Logging configuration
    log_level: str | None = Field(
        default=None, description="Log level; DEBUG in debug mode, INFO otherwise"
    )
    log_dir: str = Field(default="logs", description="Directory of the log file")
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )

    # Telemetry configuration
    enable_telemetry: bool = Field(
        default=False, description="Enable OpenTelemetry tracing and metrics"
    )
    metrics_port: int = Field(
        default=DEFAULT_METRICS_PORT,
        ge=1,
        le=65535,
        description="Port of the Prometheus metrics server",
    )

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Get the database URL with an async driver."""
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://")
        return self.database_url


# Global settings instance
settings: Final = Settings()
