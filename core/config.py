"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.schema import ParseOptions


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="Banking CSV Display Service", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Storage
    database_path: str = Field(default="bankdisplay.db", alias="DATABASE_PATH")
    max_upload_bytes: int = Field(default=20 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    # Fetching raw CSV text
    fetch_timeout: int = Field(default=30, alias="FETCH_TIMEOUT")

    # CSV parsing
    skip_empty_rows: bool = Field(default=True, alias="SKIP_EMPTY_ROWS")
    trim_whitespace: bool = Field(default=True, alias="TRIM_WHITESPACE")
    handle_empty_headers: bool = Field(default=True, alias="HANDLE_EMPTY_HEADERS")

    # Worked-hours estimation
    session_gap_minutes: int = Field(default=60, alias="SESSION_GAP_MINUTES")
    session_padding_minutes: int = Field(default=60, alias="SESSION_PADDING_MINUTES")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("fetch_timeout", "max_upload_bytes")
    @classmethod
    def validate_positive(cls, v):
        """Timeouts and size limits must be positive."""
        if v <= 0:
            raise ValueError("Value must be greater than zero")
        return v

    @field_validator("session_gap_minutes", "session_padding_minutes")
    @classmethod
    def validate_session_minutes(cls, v):
        """Session window and padding must be at least one minute."""
        if v < 1:
            raise ValueError("Session minutes must be at least 1")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def parse_options(self) -> ParseOptions:
        """Build tokenizer options from the CSV parsing settings."""
        return ParseOptions(
            skip_empty_rows=self.skip_empty_rows,
            trim_whitespace=self.trim_whitespace,
            handle_empty_headers=self.handle_empty_headers,
        )

    def ensure_directories(self) -> None:
        """Ensure the database directory exists."""
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.ensure_directories()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
