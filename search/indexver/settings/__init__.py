"""
Settings store abstraction for index version metadata.

This module provides a pluggable settings store:
- SettingsStore: Protocol defining the store interface
- InMemorySettingsStore: In-memory implementation for testing
- SqliteSettingsStore: SQLite implementation

Usage:
    from search.indexver.settings import create_settings_store
    store = create_settings_store(config.settings)
    await store.connect()
    versions = await store.load("index_versions", SettingsScope.SITE, {})
"""

from .base import (
    SettingsConnectionError,
    SettingsError,
    SettingsScope,
    SettingsSerializationError,
    SettingsStore,
    create_settings_store,
)
from .memory import InMemorySettingsStore
from .sqlite import SqliteSettingsStore

__all__ = [
    "SettingsStore",
    "SettingsScope",
    "SettingsError",
    "SettingsConnectionError",
    "SettingsSerializationError",
    "create_settings_store",
    "InMemorySettingsStore",
    "SqliteSettingsStore",
]
