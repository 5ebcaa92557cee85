"""
Index versioning service wiring.

This module assembles the long-lived components shared by every request:
- Settings store (SQLite or in-memory)
- Version registry
- Indexable registry
- Indexing job queue

and hands out a fresh RequestContext per request.

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - The settings store is connected before any request context is created
    - All requests share the registry and job queue, never request state

How to change safely:
    - Register indexables before serving requests
    - Test shutdown: stop() must not run while requests are in flight
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import Optional

import json_log_formatter

from .config import ServiceConfig
from .context import RequestContext, request_context
from .indexables import IndexableRegistry, get_indexables
from .queue import JobQueue
from .settings import SettingsStore, create_settings_store
from .versioning import VersionRegistry

logger = logging.getLogger(__name__)


def setup_logging(config: ServiceConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Service configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


class VersioningService:
    """Owns the shared versioning components.

    Attributes:
        config: Service configuration
        store: Settings store holding version metadata
        registry: Version registry
        indexables: Indexable type registry
        job_queue: Process-wide indexing job queue

    Example:
        >>> service = VersioningService()
        >>> await service.start()
        >>> async with service.request() as ctx:
        ...     await ctx.queue.queue_object(42, "post")
        >>> await service.stop()
    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        store: SettingsStore | None = None,
        indexables: IndexableRegistry | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Optional service configuration (loaded from env if not provided)
            store: Optional settings store (built from config if not provided)
            indexables: Optional indexable registry (process-wide one if not provided)
        """
        self.config = config or ServiceConfig.from_env()
        self.store: SettingsStore = store or create_settings_store(self.config.settings)
        self.indexables = indexables if indexables is not None else get_indexables()
        self.job_queue = JobQueue(max_pending=self.config.queue.max_pending)
        self.registry: Optional[VersionRegistry] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether start() has completed and stop() has not."""
        return self._running

    async def start(self) -> None:
        """Connect the settings store and build the registry."""
        if self._running:
            logger.warning("Versioning service already running")
            return

        self.config.log_config()

        await self.store.connect()
        self.registry = VersionRegistry(
            self.store,
            option_key=self.config.settings.option_key,
            is_network_mode=self.config.settings.network_mode,
        )

        self._running = True
        logger.info(
            f"Versioning service started with {len(self.indexables)} indexable types"
        )

    async def stop(self) -> None:
        """Close the settings store."""
        if not self._running:
            return

        await self.store.close()
        self._running = False
        logger.info("Versioning service stopped")

    def request(self) -> AbstractAsyncContextManager[RequestContext]:
        """Context manager for one request; replicates queued jobs on exit.

        Raises:
            RuntimeError: If the service has not been started
        """
        if not self._running or self.registry is None:
            raise RuntimeError("Versioning service is not running")

        return request_context(
            self.registry,
            self.indexables,
            self.job_queue,
            replication_enabled=self.config.replication.enabled,
        )
