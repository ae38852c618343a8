"""
Sheriff's Office configuration management using pydantic-settings.

Values come from environment variables (or a local .env file).
"""

import logging
import warnings
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SEED_PASSWORD = "admin123"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Sessions
    session_ttl_hours: int = Field(
        default=24, ge=1, description="Absolute session lifetime in hours"
    )
    session_sweep_interval_seconds: int = Field(
        default=3600, ge=0, description="Expired-session sweep interval (0 disables)"
    )

    # Persistence
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the persisted snapshot",
    )
    snapshot_filename: str = Field(
        default="storage.json", description="Snapshot file name inside data_dir"
    )
    seed_file: Optional[Path] = Field(
        default=None,
        description="Optional snapshot file used by reset-to-seed",
    )
    load_snapshot_on_startup: bool = Field(
        default=True, description="Import the persisted snapshot at startup"
    )
    autosave_interval_seconds: int = Field(
        default=300, ge=0, description="Autosave interval (0 disables autosave)"
    )

    # Admin channel
    admin_api_key: Optional[str] = Field(
        default=None,
        description="Key accepted in X-Admin-Key for the storage admin routes",
    )

    # Seed account
    seed_admin_username: str = Field(default="sheriff")
    seed_admin_password: str = Field(default=DEFAULT_SEED_PASSWORD)

    # Accounts
    min_password_length: int = Field(default=4, ge=1)
    login_max_failures: int = Field(
        default=5, ge=1, description="Failed logins per username before throttling"
    )
    login_lockout_seconds: int = Field(
        default=300, ge=1, description="Throttle window for failed logins"
    )

    # Security - CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:5000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    # Security - Rate Limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_requests: int = Field(
        default=300, description="Rate limit requests per window"
    )
    rate_limit_window_seconds: int = Field(
        default=60, description="Rate limit window in seconds"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Ensure critical settings are configured in production."""
        if self.environment == "production":
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if not self.admin_api_key:
                raise ValueError("ADMIN_API_KEY must be set in production")
            if self.seed_admin_password == DEFAULT_SEED_PASSWORD:
                raise ValueError("SEED_ADMIN_PASSWORD must not be the default in production")
        elif self.seed_admin_password == DEFAULT_SEED_PASSWORD:
            warnings.warn(
                "SEED_ADMIN_PASSWORD uses the default value. "
                "Set SEED_ADMIN_PASSWORD before exposing this service!",
                UserWarning,
                stacklevel=2,
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def snapshot_path(self) -> Path:
        """Full path of the persisted snapshot file."""
        return self.data_dir / self.snapshot_filename


# Global settings instance
settings = Settings()
