"""
Indexing queue seam.

- JobQueue: Process-wide pending job store, de-duplicated per version
- IndexingQueue: Per-request queue_object() that stamps the current version
- QueueObserver: Protocol for components that watch queued jobs
"""

from .indexing_queue import IndexingQueue, QueueObserver
from .jobs import IndexingJob, JobQueue, QueueError, QueueFullError

__all__ = [
    "IndexingJob",
    "JobQueue",
    "IndexingQueue",
    "QueueObserver",
    "QueueError",
    "QueueFullError",
]
