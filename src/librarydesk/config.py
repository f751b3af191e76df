"""Configuration management for librarydesk.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Logging
    log_level: str

    # Unit-of-work retries on concurrent writes
    max_retries: int
    retry_base_delay: float  # seconds

    # Lookahead for due-soon queries and reminders
    due_soon_days: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LIBRARYDESK_DB_PATH",
            str(Path.home() / ".librarydesk" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            log_level=os.environ.get("LIBRARYDESK_LOG_LEVEL", "WARNING").upper(),
            max_retries=int(os.environ.get("LIBRARYDESK_MAX_RETRIES", "3")),
            retry_base_delay=float(os.environ.get("LIBRARYDESK_RETRY_DELAY", "0.05")),
            due_soon_days=int(os.environ.get("LIBRARYDESK_DUE_SOON_DAYS", "3")),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        if self.max_retries < 1:
            errors.append("LIBRARYDESK_MAX_RETRIES must be at least 1")

        if self.due_soon_days < 1:
            errors.append("LIBRARYDESK_DUE_SOON_DAYS must be at least 1")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
