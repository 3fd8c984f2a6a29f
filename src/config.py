"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file).

    Variables use the ``CYCLE_DIARY_`` prefix, e.g. ``CYCLE_DIARY_DATA_FILE``.
    """

    # --- App ---
    app_name: str = "Cycle Diary"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Storage ---
    data_file: Path | None = None  # None keeps the diary in memory
    seed_demo_data: bool = False

    model_config = {
        "env_prefix": "CYCLE_DIARY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()
