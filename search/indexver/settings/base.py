"""
Base protocol and types for the settings store abstraction.

The settings store persists arbitrary nested mappings ("options") under a
string key, either for one site or for the whole network. Index version
metadata lives in a single option.

Invariants:
    - SITE and NETWORK scopes never share values
    - A successful save() is visible to the next load() in the same process
    - Values must be JSON-serializable

How to change safely:
    - Protocol changes require updating all implementations
    - Add new methods as optional with default implementations
"""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from typing import (
    Any,
    Optional,
    Protocol,
    runtime_checkable,
    TYPE_CHECKING,
)
import logging

if TYPE_CHECKING:
    from ..config import SettingsConfig

logger = logging.getLogger(__name__)


class SettingsError(Exception):
    """Base exception for settings store operations."""
    pass


class SettingsConnectionError(SettingsError):
    """Settings store is not connected or the connection failed."""
    pass


class SettingsSerializationError(SettingsError):
    """Failed to serialize/deserialize an option value."""
    pass


class SettingsScope(Enum):
    """Where an option is stored."""

    SITE = "site"
    NETWORK = "network"


@runtime_checkable
class SettingsStore(Protocol):
    """Protocol for settings store backends.

    Example:
        >>> store = InMemorySettingsStore(site_id="1")
        >>> await store.connect()
        >>> await store.save("index_versions", {"post": {}}, SettingsScope.SITE)
        True
        >>> await store.load("index_versions", SettingsScope.SITE)
        {'post': {}}
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the backend.

        Raises:
            SettingsConnectionError: If connection fails
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        ...

    @abstractmethod
    async def load(
        self,
        key: str,
        scope: SettingsScope,
        default: Optional[Any] = None,
    ) -> Any:
        """Load an option value.

        Args:
            key: Option key
            scope: SITE or NETWORK
            default: Returned when the option has never been saved

        Returns:
            The stored value, or default

        Raises:
            SettingsConnectionError: If not connected
        """
        ...

    @abstractmethod
    async def save(self, key: str, value: Any, scope: SettingsScope) -> bool:
        """Persist an option value, replacing any previous value.

        Args:
            key: Option key
            value: JSON-serializable value
            scope: SITE or NETWORK

        Returns:
            True once the value is durably stored

        Raises:
            SettingsConnectionError: If not connected
            SettingsSerializationError: If the value cannot be serialized
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether currently connected to the backend."""
        ...


def create_settings_store(config: "SettingsConfig") -> SettingsStore:
    """Factory function to create a settings store from configuration.

    Args:
        config: Settings configuration

    Returns:
        Appropriate SettingsStore implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import SettingsBackend
    from .memory import InMemorySettingsStore
    from .sqlite import SqliteSettingsStore

    if config.backend == SettingsBackend.SQLITE:
        return SqliteSettingsStore(
            data_dir=config.data_dir,
            site_id=config.site_id,
            db_filename=config.db_filename,
            wal_mode=config.wal_mode,
            busy_timeout_ms=config.busy_timeout_ms,
        )
    elif config.backend == SettingsBackend.MEMORY:
        return InMemorySettingsStore(site_id=config.site_id)
    else:
        raise ValueError(f"Unsupported settings backend: {config.backend}")
