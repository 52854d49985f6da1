"""
ttlkv Configuration Settings

This module contains all configuration constants for ttlkv. Values are read
from the environment once, at import time.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Store and cache configuration settings."""

    # Storage settings
    DB_PATH: str = os.environ.get("TTLKV_DB_PATH", "./data/ttlkv.db")
    ENGINE: str = os.environ.get("TTLKV_ENGINE", "sqlite")

    # SQLite engine settings
    SQLITE_TIMEOUT: float = float(os.environ.get("TTLKV_SQLITE_TIMEOUT", "10.0"))
    SQLITE_JOURNAL_MODE: str = os.environ.get("TTLKV_SQLITE_JOURNAL_MODE", "WAL")
    SQLITE_SYNCHRONOUS: str = os.environ.get("TTLKV_SQLITE_SYNCHRONOUS", "NORMAL")

    # Cache settings
    KEY_LOCKING: bool = os.environ.get("TTLKV_KEY_LOCKING", "true").lower() == "true"

    # Logging settings
    DEBUG: bool = os.environ.get("TTLKV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("TTLKV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
