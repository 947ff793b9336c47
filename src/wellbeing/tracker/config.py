"""Configuration management for the challenge tracker.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

COMPLETION_STRATEGIES = ("entries", "periods")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUTHY = {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a whole number: {raw!r}") from None


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Lifecycle
    inactivity_threshold_days: int

    # Accounting
    month_length_days: int
    completion_strategy: str

    # Logging
    log_level: str
    log_json: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ValueError: If a numeric setting is not a whole number
        """
        db_path_str = os.environ.get(
            "WELLBEING_DB_PATH",
            str(Path.home() / ".wellbeing" / "tracker.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            inactivity_threshold_days=_int_env("WELLBEING_INACTIVITY_DAYS", 14),
            month_length_days=_int_env("WELLBEING_MONTH_LENGTH_DAYS", 30),
            completion_strategy=os.environ.get(
                "WELLBEING_COMPLETION_STRATEGY", "entries"
            ).lower(),
            log_level=os.environ.get("WELLBEING_LOG_LEVEL", "WARNING").upper(),
            log_json=os.environ.get("WELLBEING_LOG_JSON", "false").lower() in _TRUTHY,
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.inactivity_threshold_days < 1:
            errors.append(
                f"Inactivity threshold must be positive: {self.inactivity_threshold_days}"
            )

        if self.month_length_days < 1:
            errors.append(f"Month length must be positive: {self.month_length_days}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        if self.completion_strategy not in COMPLETION_STRATEGIES:
            errors.append(
                f"Unknown completion strategy: {self.completion_strategy} "
                f"(expected one of {', '.join(COMPLETION_STRATEGIES)})"
            )

        # Check database directory is writable
        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors
