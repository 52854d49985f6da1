"""Configuration module for ttlkv."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
