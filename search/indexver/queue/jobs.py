"""
In-memory indexing job queue.

The JobQueue holds indexing jobs until a worker takes them. Each job names an
object, its indexable type and the index version it must be written to.

Invariants:
    - At most one pending job per (object_id, object_type, index_version)
    - Jobs are handed to workers in enqueue order
    - Shared by every request in the process

How to change safely:
    - Keep enqueue() non-blocking; it runs inside request handling
    - Workers must call take(); pending() never removes jobs
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

JobKey = Tuple[str, str, int]


class QueueError(Exception):
    """Base exception for job queue operations."""
    pass


class QueueFullError(QueueError):
    """The queue holds max_pending jobs already."""
    pass


@dataclass
class IndexingJob:
    """A request to (re)index one object into one index version.

    Attributes:
        object_id: Identifier of the object to index
        object_type: Indexable slug
        index_version: Index version the job writes to
        options: Options passed to queue_object(), including index_version
        queued_at: Enqueue time (Unix ms)
    """

    object_id: Any
    object_type: str
    index_version: int
    options: Dict[str, Any] = field(default_factory=dict)
    queued_at: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def key(self) -> JobKey:
        """De-duplication key."""
        return (str(self.object_id), self.object_type, self.index_version)


class JobQueue:
    """Pending indexing jobs, de-duplicated by object, type and version.

    Example:
        >>> queue = JobQueue()
        >>> await queue.enqueue(IndexingJob("42", "post", 1))
        True
        >>> await queue.enqueue(IndexingJob("42", "post", 1))
        False
        >>> [job.object_id for job in await queue.take()]
        ['42']
    """

    def __init__(self, max_pending: int = 100_000) -> None:
        """Initialize an empty queue.

        Args:
            max_pending: Maximum pending jobs before enqueue() raises
        """
        self.max_pending = max_pending
        self._jobs: OrderedDict[JobKey, IndexingJob] = OrderedDict()
        self._lock = asyncio.Lock()

    async def enqueue(self, job: IndexingJob) -> bool:
        """Add a job unless an identical one is already pending.

        Returns:
            True if the job was added, False if it was a duplicate

        Raises:
            QueueFullError: If max_pending jobs are already queued
        """
        async with self._lock:
            if job.key in self._jobs:
                return False

            if len(self._jobs) >= self.max_pending:
                raise QueueFullError(
                    f"Indexing queue is full ({self.max_pending} pending jobs)"
                )

            self._jobs[job.key] = job

        logger.debug(
            "Indexing job queued",
            extra={
                "object_id": job.object_id,
                "object_type": job.object_type,
                "index_version": job.index_version,
            },
        )
        return True

    async def take(self, limit: Optional[int] = None) -> List[IndexingJob]:
        """Remove and return up to limit jobs, oldest first."""
        async with self._lock:
            taken: List[IndexingJob] = []
            while self._jobs and (limit is None or len(taken) < limit):
                _, job = self._jobs.popitem(last=False)
                taken.append(job)
            return taken

    def pending(
        self,
        object_type: Optional[str] = None,
        index_version: Optional[int] = None,
    ) -> List[IndexingJob]:
        """Pending jobs, optionally filtered by type and version."""
        return [
            job for job in self._jobs.values()
            if (object_type is None or job.object_type == object_type)
            and (index_version is None or job.index_version == index_version)
        ]

    def size(self) -> int:
        """Number of pending jobs."""
        return len(self._jobs)

    def clear(self) -> None:
        """Drop every pending job."""
        self._jobs.clear()
