"""
In-memory settings store implementation for testing.

Invariants:
    - All data is lost on process exit
    - Values are deep-copied on save and load, so callers never share state
      with the store

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with SettingsStore protocol
"""

from __future__ import annotations

import asyncio
import copy
import json
from typing import Any, Dict, Optional, Tuple
import logging

from .base import (
    SettingsScope,
    SettingsConnectionError,
    SettingsError,
    SettingsSerializationError,
)

logger = logging.getLogger(__name__)


class InMemorySettingsStore:
    """In-memory implementation of SettingsStore for testing.

    Site-scoped options are keyed by the site the store was created for;
    network-scoped options are shared by every site.

    Example:
        >>> store = InMemorySettingsStore(site_id="1")
        >>> await store.connect()
        >>> await store.save("index_versions", {}, SettingsScope.NETWORK)
        True
    """

    def __init__(self, site_id: str = "1") -> None:
        """Initialize in-memory settings store.

        Args:
            site_id: Site whose options are addressed by SettingsScope.SITE
        """
        self.site_id = site_id
        self._options: Dict[Tuple[str, str], Any] = {}
        self._connected = False
        self._lock = asyncio.Lock()
        self._fail_next_save: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        """Whether connected (always true after connect())."""
        return self._connected

    async def connect(self) -> None:
        """Connect (no-op for in-memory)."""
        self._connected = True
        logger.debug("InMemorySettingsStore connected")

    async def close(self) -> None:
        """Close the store. Stored options are kept for reconnects."""
        self._connected = False
        logger.debug("InMemorySettingsStore closed")

    async def load(
        self,
        key: str,
        scope: SettingsScope,
        default: Optional[Any] = None,
    ) -> Any:
        """Load an option value (deep copy)."""
        if not self._connected:
            raise SettingsConnectionError("Not connected")

        async with self._lock:
            scope_key = self._scope_key(scope)
            if (scope_key, key) not in self._options:
                return default
            return copy.deepcopy(self._options[(scope_key, key)])

    async def save(self, key: str, value: Any, scope: SettingsScope) -> bool:
        """Persist an option value (deep copy)."""
        if not self._connected:
            raise SettingsConnectionError("Not connected")

        if self._fail_next_save is not None:
            exc, self._fail_next_save = self._fail_next_save, None
            raise exc

        # Reject the same values a JSON-backed store would reject
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SettingsSerializationError(f"Option '{key}' is not serializable: {e}")

        async with self._lock:
            self._options[(self._scope_key(scope), key)] = copy.deepcopy(value)

        logger.debug(
            "Option saved to in-memory settings store",
            extra={"key": key, "scope": scope.value},
        )
        return True

    def _scope_key(self, scope: SettingsScope) -> str:
        if scope == SettingsScope.NETWORK:
            return "network"
        return f"site:{self.site_id}"

    # Testing helpers

    def fail_next_save(self, exception: Optional[Exception] = None) -> None:
        """Make the next save() raise (testing helper).

        Args:
            exception: Exception to raise (defaults to SettingsError)
        """
        self._fail_next_save = exception or SettingsError("Injected save failure")

    def get_raw(self, key: str, scope: SettingsScope) -> Any:
        """Get the stored value without copying or connection checks (testing helper)."""
        return self._options.get((self._scope_key(scope), key))

    def clear(self) -> None:
        """Remove every stored option (testing helper)."""
        self._options.clear()
