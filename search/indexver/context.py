"""
Per-request context.

A RequestContext owns all request-scoped versioning state: the current
version overrides, the replication ledger, the queue facade that feeds the
ledger, and the engine that replays the ledger at shutdown. Every request
gets its own context, so concurrent requests never share in-memory state.

Example:
    >>> async with request_context(registry, indexables, job_queue) as ctx:
    ...     await ctx.queue.queue_object(42, "post")
    >>> # On exit, job 42 was replicated to every inactive "post" version
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .indexables import IndexableRegistry
from .queue import IndexingQueue, JobQueue
from .replication import ReplicationEngine, ReplicationLedger, ReplicationResult
from .versioning import VersionRegistry, VersionState

logger = logging.getLogger(__name__)


class RequestContext:
    """Request-scoped versioning state.

    Attributes:
        state: Current version overrides for this request
        ledger: Jobs queued during this request
        queue: queue_object() entry point for this request
        replicator: Replays the ledger at shutdown
    """

    def __init__(
        self,
        registry: VersionRegistry,
        indexables: IndexableRegistry,
        job_queue: JobQueue,
        replication_enabled: bool = True,
    ) -> None:
        self.registry = registry
        self.state = VersionState(registry)
        self.ledger = ReplicationLedger()
        self.queue = IndexingQueue(job_queue, self.state, observers=[self.ledger])
        self.replicator = ReplicationEngine(indexables, registry, self.state, self.queue)
        self.replication_enabled = replication_enabled
        self._shut_down = False

    @property
    def is_shut_down(self) -> bool:
        """Whether shutdown() has run."""
        return self._shut_down

    async def shutdown(self) -> ReplicationResult:
        """Replicate the jobs queued during this request. Runs once.

        Returns:
            ReplicationResult (empty on repeated calls or when disabled)
        """
        if self._shut_down:
            return ReplicationResult()
        self._shut_down = True

        queued_objects = self.ledger.drain()
        if not self.replication_enabled:
            return ReplicationResult()

        return await self.replicator.replicate(queued_objects)


@asynccontextmanager
async def request_context(
    registry: VersionRegistry,
    indexables: IndexableRegistry,
    job_queue: JobQueue,
    replication_enabled: bool = True,
) -> AsyncIterator[RequestContext]:
    """Run a request with its own versioning context.

    Replication runs when the block exits, also when it raises. Replication
    failures are logged and never raised out of the request.
    """
    ctx = RequestContext(registry, indexables, job_queue, replication_enabled)
    try:
        yield ctx
    finally:
        try:
            await ctx.shutdown()
        except Exception as e:
            logger.error(f"Replication at request shutdown failed: {e}", exc_info=True)
