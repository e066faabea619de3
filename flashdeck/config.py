"""
Centralized configuration management for the flashdeck application.
"""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_db_path() -> Path:
    """Returns the default path for the database file."""
    return Path.home() / ".flashdeck" / "flashdeck.db"


class Settings(BaseSettings):
    """
    Defines application settings, loaded from environment variables or .env files.
    """
    model_config = SettingsConfigDict(
        env_prefix="FLASHDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Core Paths ---
    # Overridden by the FLASHDECK_DB_PATH env var.
    db_path: Path = get_default_db_path()

    # --- Identity ---
    # Identity used for writes when none is given on the command line.
    # Overridden by FLASHDECK_USER_ID.
    user_id: Optional[str] = None

    # --- Logging ---
    log_level: str = "WARNING"

    # --- Testing Configuration ---
    # When True, disables safety checks that prevent data loss during tests.
    # Should NEVER be enabled in production. Can be set via FLASHDECK_TESTING_MODE.
    testing_mode: bool = False


# Create a singleton instance of the settings
settings = Settings()
