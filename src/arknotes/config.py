"""Configuration settings."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://127.0.0.1:8000"
DEFAULT_SYNC_INTERVAL = 30.0
DEFAULT_LOG_LEVEL = "INFO"


def get_root_path() -> str:
    """Get the storage root (a local path or any fsspec URL)."""
    return os.environ.get("ARKNOTES_ROOT") or str(Path.home() / ".arknotes")


def get_api_base() -> str:
    """Get the base URL of the remote document store."""
    return (os.environ.get("ARKNOTES_API_BASE") or DEFAULT_API_BASE).rstrip("/")


def get_sync_interval() -> float:
    """Get the auto-sync period in seconds."""
    raw = os.environ.get("ARKNOTES_SYNC_INTERVAL")
    if not raw:
        return DEFAULT_SYNC_INTERVAL
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid ARKNOTES_SYNC_INTERVAL %r; using default", raw)
        return DEFAULT_SYNC_INTERVAL
    if value <= 0:
        logger.warning("ARKNOTES_SYNC_INTERVAL must be positive; using default")
        return DEFAULT_SYNC_INTERVAL
    return value


def get_log_level() -> str:
    """Get the root log level name."""
    return (os.environ.get("ARKNOTES_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
