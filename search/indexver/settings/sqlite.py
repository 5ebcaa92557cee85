"""
SQLite settings store.

Stores options for every site and the network in one SQLite file. Each save
replaces the whole option value in a single autocommitted statement, so a
save is immediately visible to subsequent loads.

Invariants:
    - One row per (scope_key, option_key)
    - Values are stored as JSON text; mapping keys come back as strings
    - Site options are isolated from each other and from network options

How to change safely:
    - Schema migrations must be backward compatible
    - Never store non-JSON values; normalize on read instead

Table schema:
    options:
        - scope_key TEXT ('network' or 'site:<site_id>')
        - option_key TEXT
        - value_json TEXT
        - updated_at INTEGER (Unix ms)
        - PRIMARY KEY (scope_key, option_key)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .base import (
    SettingsConnectionError,
    SettingsError,
    SettingsScope,
    SettingsSerializationError,
)

logger = logging.getLogger(__name__)


class SqliteSettingsStore:
    """SQLite-backed implementation of SettingsStore.

    Thread safety:
        Each operation opens its own connection.
        SQLite handles concurrent access via WAL mode.

    Example:
        >>> store = SqliteSettingsStore("/var/lib/indexver", site_id="12")
        >>> await store.connect()
        >>> await store.save("index_versions", {"post": {}}, SettingsScope.SITE)
        True
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        data_dir: str,
        site_id: str = "1",
        db_filename: str = "settings.db",
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the settings store.

        Args:
            data_dir: Directory for the SQLite database file
            site_id: Site whose options are addressed by SettingsScope.SITE
            db_filename: Database file name
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.data_dir = Path(data_dir)
        self.site_id = site_id
        self.db_path = self.data_dir / db_filename
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms
        self._connected = False
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Whether connect() has completed."""
        return self._connected

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Open a configured database connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit
        )
        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

            yield conn
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS options (
                scope_key TEXT NOT NULL,
                option_key TEXT NOT NULL,
                value_json TEXT NOT NULL,
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (scope_key, option_key)
            );

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)

    async def connect(self) -> None:
        """Create the database file and schema if they don't exist."""
        async with self._lock:
            try:
                with self._get_connection() as conn:
                    self._create_schema(conn)
            except (sqlite3.Error, OSError) as e:
                raise SettingsConnectionError(
                    f"Failed to open settings database {self.db_path}: {e}"
                )
            self._connected = True
            logger.info(f"Settings store ready: {self.db_path}")

    async def close(self) -> None:
        """Mark the store closed. Connections are per-operation."""
        self._connected = False

    async def load(
        self,
        key: str,
        scope: SettingsScope,
        default: Any = None,
    ) -> Any:
        """Load an option value."""
        if not self._connected:
            raise SettingsConnectionError("Not connected")

        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value_json FROM options WHERE scope_key = ? AND option_key = ?",
                    (self._scope_key(scope), key),
                ).fetchone()
        except sqlite3.Error as e:
            raise SettingsError(f"Failed to load option '{key}': {e}")

        if row is None:
            return default

        try:
            return json.loads(row["value_json"])
        except json.JSONDecodeError as e:
            raise SettingsSerializationError(f"Option '{key}' holds invalid JSON: {e}")

    async def save(self, key: str, value: Any, scope: SettingsScope) -> bool:
        """Persist an option value."""
        if not self._connected:
            raise SettingsConnectionError("Not connected")

        try:
            value_json = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SettingsSerializationError(f"Option '{key}' is not serializable: {e}")

        async with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute(
                        """
                        INSERT INTO options (scope_key, option_key, value_json, updated_at)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT (scope_key, option_key)
                        DO UPDATE SET value_json = excluded.value_json,
                                      updated_at = excluded.updated_at
                        """,
                        (self._scope_key(scope), key, value_json, int(time.time() * 1000)),
                    )
            except sqlite3.Error as e:
                raise SettingsError(f"Failed to save option '{key}': {e}")

        logger.debug(
            "Option saved",
            extra={"key": key, "scope": scope.value, "bytes": len(value_json)},
        )
        return True

    def _scope_key(self, scope: SettingsScope) -> str:
        if scope == SettingsScope.NETWORK:
            return "network"
        return f"site:{self.site_id}"
