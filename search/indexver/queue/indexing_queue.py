"""
Per-request queue_object() primitive.

Application code queues an object for indexing without knowing about index
versions. The IndexingQueue stamps the job with the explicit
options["index_version"] if one is given, otherwise with the current version
from the request's VersionState, then tells its observers what was queued.
Observers also hear about duplicates of pending jobs; only a full queue
keeps a call from being reported.

Observers are passed in explicitly (the request's ReplicationLedger is the
usual one); there is no global hook registry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from .jobs import IndexingJob, JobQueue

if TYPE_CHECKING:
    from ..versioning.state import VersionState

logger = logging.getLogger(__name__)


@runtime_checkable
class QueueObserver(Protocol):
    """Receives every accepted queue_object() call, duplicates included."""

    def on_object_queued(
        self,
        object_id: Any,
        object_type: str,
        options: Mapping[str, Any],
        index_version: int,
    ) -> None:
        ...


class IndexingQueue:
    """Queues indexing jobs against the current index version.

    One instance per request: it shares the process-wide JobQueue but uses
    the request's VersionState and observers.
    """

    def __init__(
        self,
        job_queue: JobQueue,
        state: VersionState,
        observers: Iterable[QueueObserver] = (),
    ) -> None:
        self._job_queue = job_queue
        self._state = state
        self._observers: list[QueueObserver] = list(observers)

    def add_observer(self, observer: QueueObserver) -> None:
        """Notify observer of every future queue_object() call that is not rejected."""
        self._observers.append(observer)

    async def queue_object(
        self,
        object_id: Any,
        object_type: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[IndexingJob]:
        """Queue an object for indexing.

        Args:
            object_id: Identifier of the object to index
            object_type: Indexable slug
            options: Job options; an int "index_version" pins the version

        Returns:
            The queued job, or None if an identical job was already pending

        Raises:
            QueueFullError: If the job queue is full
        """
        options = dict(options or {})

        index_version = options.get("index_version")
        if not isinstance(index_version, int) or isinstance(index_version, bool):
            index_version = await self._state.get_current_version_number(object_type)

        job = IndexingJob(
            object_id=object_id,
            object_type=object_type,
            index_version=index_version,
            options=options,
        )

        added = await self._job_queue.enqueue(job)

        # Duplicates are still reported: the pending job may predate a
        # version that needs a replica of it
        for observer in self._observers:
            observer.on_object_queued(object_id, object_type, options, index_version)

        if not added:
            logger.debug(
                f"Skipped duplicate indexing job for {object_type} {object_id} "
                f"(version {index_version})"
            )
            return None

        return job
