"""
Replication of queued indexing jobs to inactive index versions.

At the end of a request, every job that was queued against the active
version of a type is queued again once per inactive version, with that
version as the current version and as options["index_version"]. The active
version is the source of truth; inactive versions follow it and never the
other way around.

Invariants:
    - Only jobs queued against the active version are replicated
    - Jobs queued against inactive versions (including the replicas this
      engine queues) are never replicated further
    - Replication is best effort: unknown types, vanished versions and queue
      failures are logged and skipped

How to change safely:
    - Always reset the current version after replicating to a version
    - Keep replicate() free of persisted-state mutations
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Tuple

from ..queue.jobs import QueueError
from ..versioning.errors import InvalidVersionError, UnresolvableTypeError

if TYPE_CHECKING:
    from ..indexables import IndexableRegistry
    from ..queue.indexing_queue import IndexingQueue
    from ..versioning.registry import VersionRegistry
    from ..versioning.state import VersionState

logger = logging.getLogger(__name__)


@dataclass
class ReplicationResult:
    """Outcome of one replicate() call.

    Attributes:
        replicated: Jobs queued per (slug, inactive version)
        skipped: Reason each skipped type was skipped, by slug
    """

    replicated: Dict[Tuple[str, int], int] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        """Total replica jobs queued."""
        return sum(self.replicated.values())


class ReplicationEngine:
    """Replays active-version jobs onto every inactive version.

    Example:
        >>> engine = ReplicationEngine(indexables, registry, state, queue)
        >>> result = await engine.replicate(ledger.drain())
        >>> result.replicated
        {('post', 2): 1}
    """

    def __init__(
        self,
        indexables: IndexableRegistry,
        registry: VersionRegistry,
        state: VersionState,
        queue: IndexingQueue,
    ) -> None:
        self._indexables = indexables
        self._registry = registry
        self._state = state
        self._queue = queue

    async def replicate(self, queued_objects: Any) -> ReplicationResult:
        """Replicate queued jobs to the inactive versions of each type.

        Args:
            queued_objects: Ledger snapshot, keyed by type then index version

        Returns:
            ReplicationResult describing what was queued and skipped
        """
        result = ReplicationResult()

        if not isinstance(queued_objects, Mapping) or not queued_objects:
            return result

        for object_type, objects_by_version in queued_objects.items():
            try:
                self._indexables.require(object_type)
            except UnresolvableTypeError as e:
                logger.warning(f"Skipping replication: {e.message}")
                result.skipped[object_type] = e.code
                continue

            versions = await self._registry.get_versions(object_type)

            # Nothing to replicate to
            if len(versions) <= 1:
                result.skipped[object_type] = "single-version"
                continue

            active_version_number = await self._registry.get_active_version_number(object_type)

            active_entries = None
            if isinstance(objects_by_version, Mapping):
                active_entries = objects_by_version.get(active_version_number)

            # Only changes made to the active version are replicated
            if not active_entries:
                result.skipped[object_type] = "no-active-version-changes"
                continue

            inactive_versions = await self._registry.get_inactive_versions(object_type)

            for version_number in inactive_versions:
                try:
                    count = await self._replicate_to_version(
                        object_type, version_number, active_entries
                    )
                except InvalidVersionError as e:
                    logger.warning(
                        f"Skipping replication of '{object_type}' to version "
                        f"{version_number}: {e.message}"
                    )
                    continue
                except QueueError as e:
                    logger.error(
                        f"Failed replicating '{object_type}' to version "
                        f"{version_number}: {e}"
                    )
                    result.skipped[object_type] = "queue-error"
                    continue

                result.replicated[(object_type, version_number)] = count

        if result.replicated:
            logger.info(
                f"Replicated {result.total} indexing jobs to inactive index versions",
                extra={
                    "replicated": {
                        f"{slug}:{version}": count
                        for (slug, version), count in result.replicated.items()
                    }
                },
            )

        return result

    async def _replicate_to_version(
        self,
        object_type: str,
        version_number: int,
        entries: Any,
    ) -> int:
        count = 0
        async with self._state.override(object_type, version_number):
            for object_id, options in entries:
                replica_options = dict(options or {})
                replica_options["index_version"] = version_number

                job = await self._queue.queue_object(object_id, object_type, replica_options)
                if job is not None:
                    count += 1
        return count
