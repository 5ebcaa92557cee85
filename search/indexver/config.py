"""
Configuration management for the index versioning service.

All configuration is done via environment variables - no config files.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Storage scope (site vs network) is decided by a single setting
    - The versions option key is shared by every indexable type

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Changing INDEX_VERSIONS_OPTION orphans previously stored versions
    - Switching NETWORK_MODE on a live install changes where versions are read from
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {name} '{raw}': must be an integer")


class SettingsBackend(Enum):
    """Supported settings store backends."""

    MEMORY = "memory"
    SQLITE = "sqlite"


@dataclass(frozen=True)
class SettingsConfig:
    """Settings store configuration.

    Attributes:
        backend: Which settings store backend to use
        data_dir: Directory for the SQLite settings database
        db_filename: SQLite database file name inside data_dir
        site_id: Identifier of the site whose options are read in site scope
        network_mode: Store versions network-wide instead of per site
        option_key: Option under which all version sets are stored
        busy_timeout_ms: SQLite busy timeout in milliseconds
        wal_mode: SQLite WAL journal mode enabled
    """

    backend: SettingsBackend = SettingsBackend.SQLITE
    data_dir: str = "/var/lib/indexver"
    db_filename: str = "settings.db"
    site_id: str = "1"
    network_mode: bool = False
    option_key: str = "index_versions"
    busy_timeout_ms: int = 5000
    wal_mode: bool = True

    @classmethod
    def from_env(cls) -> SettingsConfig:
        """Load configuration from environment variables."""
        backend_str = os.getenv("SETTINGS_BACKEND", "sqlite").lower()
        try:
            backend = SettingsBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid SETTINGS_BACKEND '{backend_str}'. Must be one of: memory, sqlite"
            )

        return cls(
            backend=backend,
            data_dir=os.getenv("DATA_DIR", "/var/lib/indexver"),
            db_filename=os.getenv("SETTINGS_DB_FILENAME", "settings.db"),
            site_id=os.getenv("SITE_ID", "1"),
            network_mode=_env_bool("NETWORK_MODE", "false"),
            option_key=os.getenv("INDEX_VERSIONS_OPTION", "index_versions"),
            busy_timeout_ms=_env_int("SQLITE_BUSY_TIMEOUT_MS", 5000),
            wal_mode=_env_bool("SQLITE_WAL_MODE", "true"),
        )


@dataclass(frozen=True)
class QueueConfig:
    """Indexing job queue configuration.

    Attributes:
        max_pending: Maximum jobs held in the queue before enqueue fails
    """

    max_pending: int = 100_000

    @classmethod
    def from_env(cls) -> QueueConfig:
        """Load configuration from environment variables."""
        return cls(max_pending=_env_int("QUEUE_MAX_PENDING", 100_000))


@dataclass(frozen=True)
class ReplicationConfig:
    """End-of-request replication configuration.

    Attributes:
        enabled: Whether queued jobs are replicated to inactive versions
    """

    enabled: bool = True

    @classmethod
    def from_env(cls) -> ReplicationConfig:
        """Load configuration from environment variables."""
        return cls(enabled=_env_bool("REPLICATION_ENABLED", "true"))


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class ServiceConfig:
    """Complete service configuration.

    Attributes:
        settings: Settings store configuration
        queue: Job queue configuration
        replication: Replication configuration
        observability: Logging configuration
    """

    settings: SettingsConfig = field(default_factory=SettingsConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    replication: ReplicationConfig = field(default_factory=ReplicationConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Load complete configuration from environment variables.

        Returns:
            ServiceConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            settings=SettingsConfig.from_env(),
            queue=QueueConfig.from_env(),
            replication=ReplicationConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.settings.option_key:
            raise ValueError("INDEX_VERSIONS_OPTION must not be empty")

        if not self.settings.network_mode and not self.settings.site_id:
            raise ValueError("SITE_ID is required unless NETWORK_MODE is enabled")

        if self.queue.max_pending < 1:
            raise ValueError("QUEUE_MAX_PENDING must be at least 1")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if self.settings.backend == SettingsBackend.SQLITE and not os.path.exists(
            self.settings.data_dir
        ):
            logger.warning(
                f"Data directory does not exist: {self.settings.data_dir}. "
                "It will be created on first write."
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Service configuration loaded",
            extra={
                "settings_backend": self.settings.backend.value,
                "data_dir": self.settings.data_dir
                if self.settings.backend == SettingsBackend.SQLITE
                else None,
                "site_id": self.settings.site_id,
                "network_mode": self.settings.network_mode,
                "option_key": self.settings.option_key,
                "queue_max_pending": self.queue.max_pending,
                "replication_enabled": self.replication.enabled,
                "log_level": self.observability.log_level,
            },
        )
