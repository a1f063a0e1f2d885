"""Application configuration and constants."""
import logging
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float_env(name: str, default: float) -> float:
    """Parse float from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_log_level(name: str, default: int) -> int:
    """Parse a logging level name (INFO, DEBUG, ...) from environment."""
    raw = os.environ.get(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'learnhub.db'}"
)

# Test sessions
DEFAULT_TIME_LIMIT_MINUTES = _parse_int_env("DEFAULT_TIME_LIMIT_MINUTES", 60)
TICK_INTERVAL_SECONDS = _parse_float_env("TICK_INTERVAL_SECONDS", 1.0)
FINISHED_SESSION_TTL_SECONDS = _parse_float_env("FINISHED_SESSION_TTL_SECONDS", 600.0)

# Progress recording
RECORD_RETRY_ATTEMPTS = _parse_int_env("RECORD_RETRY_ATTEMPTS", 3)
RECORD_RETRY_DELAY_SECONDS = _parse_float_env("RECORD_RETRY_DELAY_SECONDS", 0.5)
# How long the finish endpoint waits for the write before answering
FINISH_RECORD_WAIT_SECONDS = _parse_float_env("FINISH_RECORD_WAIT_SECONDS", 0.2)

# Ratings
RATING_MIN = 1
RATING_MAX = 5

# Logging
LOG_LEVEL = _parse_log_level("LOG_LEVEL", logging.INFO)
