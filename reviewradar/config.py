"""
Review Radar Configuration Module
=================================

Runtime settings from environment variables.
Supports both .env files and system environment variables.

Scoring calibration (thresholds, penalties, weights) is not read from the
environment; see reviewradar/scoring/scoring_config.py.

Environment Variables:
    LOG_LEVEL: Root log level (default: INFO)
    LOG_JSON: Emit JSON log lines (default: false)
    LOG_FILE: Optional log file path, rotated (default: unset)
    LOG_MAX_BYTES / LOG_BACKUP_COUNT: Rotation size and kept files

    REVIEWRADAR_USE_EXTERNAL_JUDGMENT: Fuse external AI judgments when
        the caller provides one (default: true)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load environment variables from the project root .env if present
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable; empty values count as unset."""
    return os.getenv(key) or default


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: get_env("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: get_env("LOG_FILE"))
    max_bytes: int = field(default_factory=lambda: get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))
    backup_count: int = field(default_factory=lambda: get_env_int("LOG_BACKUP_COUNT", 5))

    # Structured logging
    json_logs: bool = field(default_factory=lambda: get_env_bool("LOG_JSON", False))

    def __post_init__(self):
        """Validate configuration."""
        if self.level.upper() not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be a standard level name, got: {self.level}")
        if self.max_bytes < 0:
            raise ValueError("LOG_MAX_BYTES cannot be negative")
        if self.backup_count < 0:
            raise ValueError("LOG_BACKUP_COUNT cannot be negative")


@dataclass
class Settings:
    """Main application settings container."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # External judgments are advisory; disabling them forces pattern-only grading
    use_external_judgment: bool = field(
        default_factory=lambda: get_env_bool("REVIEWRADAR_USE_EXTERNAL_JUDGMENT", True)
    )


def load_settings() -> Settings:
    """
    Load and validate all application settings.

    Raises:
        ValueError: If configuration is invalid
    """
    return Settings()


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
