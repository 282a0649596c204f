"""
Core configuration and settings for the patient portal client.
"""

from pathlib import Path
from typing import Set
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    # Logging (debug overrides log_level)
    debug: bool = False
    log_level: str = "INFO"

    # Portal API
    api_url: str = "http://localhost:8080"

    # Local archive (Orthanc) viewer
    archive_viewer_url: str = "http://localhost:8042"

    # Timeouts (seconds)
    request_timeout: float = 30.0
    upload_timeout: float = 300.0

    # Persistent session store
    session_file: Path = Path.home() / ".dental_portal" / "session.json"

    # File Upload Configuration
    allowed_extensions: Set[str] = {".dcm"}

    model_config = SettingsConfigDict(
        env_prefix="DENTAL_PORTAL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Export settings instance
settings = get_settings()
