"""Runtime configuration — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``OPSBOARD_*`` environment variables.

Examples
--------
Override via environment::

    export OPSBOARD_LOG_LEVEL=DEBUG
    export OPSBOARD_DB_PATH=/data/opsboard.db
    export OPSBOARD_POLL_INTERVAL_SECONDS=30
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class BoardConfig(BaseSettings):
    """Board configuration with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="OPSBOARD_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # One SQLite file holds the live-state row, history and email tables
    db_path: Path = Path(".opsboard/opsboard.db")

    # Polling (seconds)
    poll_interval_seconds: float = 10.0

    # History page size
    history_limit: int = 50

    # Streamlit dashboard
    host: str = "0.0.0.0"
    port: int = 8501

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton — import as `from opsboard.config import config`
config = BoardConfig()
