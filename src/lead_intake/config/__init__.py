"""Configuration package for the lead intake service."""

from .settings import IntakeSettings, StorageBackend, get_settings

__all__ = ["IntakeSettings", "StorageBackend", "get_settings"]
