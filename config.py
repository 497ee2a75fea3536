"""
Configuration for the pair overlap finder.

Values come from environment variables (prefixed ``PAIRS_``) or a local
``.env`` file, e.g. ``PAIRS_LOG_LEVEL=DEBUG``.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAIRS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # APPLICATION
    # =========================================================================
    APP_NAME: str = "Employee Pair Overlap Finder"
    LOG_LEVEL: str = "INFO"

    # =========================================================================
    # INPUT PARSING
    # =========================================================================
    HEADER_MARKER: str = "EmpID"
    FIELD_DELIMITER: str = ","
    NULL_TOKEN: str = "null"
    DATE_DAYFIRST: bool = False

    # =========================================================================
    # UPLOADS
    # =========================================================================
    MAX_UPLOAD_MB: int = 20

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got {v!r}.")
        return v

    @field_validator("FIELD_DELIMITER")
    @classmethod
    def _delimiter_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("FIELD_DELIMITER is required.")
        return v

    @field_validator("NULL_TOKEN")
    @classmethod
    def _null_token_lower(cls, v: str) -> str:
        return (v or "null").strip().lower()


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (read once)."""
    return Settings()
