"""
Unit tests for the indexing queue.

Tests cover:
- JobQueue de-duplication, ordering and capacity
- queue_object() version stamping
- Observer notification
"""

import pytest

from search.indexver.queue import (
    IndexingJob,
    IndexingQueue,
    JobQueue,
    QueueFullError,
)
from search.indexver.versioning import VersionState


class RecordingObserver:
    """Records every notification."""

    def __init__(self):
        self.calls = []

    def on_object_queued(self, object_id, object_type, options, index_version):
        self.calls.append((object_id, object_type, dict(options), index_version))


@pytest.fixture
def job_queue():
    """Create an empty job queue."""
    return JobQueue()


@pytest.fixture
def state(registry):
    """Create a version state over the registry."""
    return VersionState(registry)


class TestJobQueue:
    """Tests for JobQueue."""

    @pytest.mark.asyncio
    async def test_enqueue_and_take(self, job_queue):
        """Jobs are taken oldest first."""
        await job_queue.enqueue(IndexingJob(1, "post", 1))
        await job_queue.enqueue(IndexingJob(2, "post", 1))

        taken = await job_queue.take()

        assert [job.object_id for job in taken] == [1, 2]
        assert job_queue.size() == 0

    @pytest.mark.asyncio
    async def test_duplicates_are_rejected(self, job_queue):
        """Only one pending job per object, type and version."""
        assert await job_queue.enqueue(IndexingJob(1, "post", 1))
        assert not await job_queue.enqueue(IndexingJob(1, "post", 1))
        assert not await job_queue.enqueue(IndexingJob("1", "post", 1))

        assert await job_queue.enqueue(IndexingJob(1, "post", 2))
        assert await job_queue.enqueue(IndexingJob(1, "user", 1))
        assert job_queue.size() == 3

    @pytest.mark.asyncio
    async def test_take_limit(self, job_queue):
        """take() returns at most limit jobs."""
        for object_id in range(5):
            await job_queue.enqueue(IndexingJob(object_id, "post", 1))

        taken = await job_queue.take(limit=2)

        assert [job.object_id for job in taken] == [0, 1]
        assert job_queue.size() == 3

    @pytest.mark.asyncio
    async def test_taken_job_can_be_queued_again(self, job_queue):
        """De-duplication only applies to pending jobs."""
        await job_queue.enqueue(IndexingJob(1, "post", 1))
        await job_queue.take()

        assert await job_queue.enqueue(IndexingJob(1, "post", 1))

    @pytest.mark.asyncio
    async def test_full_queue(self):
        """Enqueueing beyond max_pending raises."""
        job_queue = JobQueue(max_pending=1)
        await job_queue.enqueue(IndexingJob(1, "post", 1))

        with pytest.raises(QueueFullError):
            await job_queue.enqueue(IndexingJob(2, "post", 1))

    @pytest.mark.asyncio
    async def test_pending_filters(self, job_queue):
        """pending() filters by type and version without removing jobs."""
        await job_queue.enqueue(IndexingJob(1, "post", 1))
        await job_queue.enqueue(IndexingJob(1, "post", 2))
        await job_queue.enqueue(IndexingJob(1, "user", 1))

        assert len(job_queue.pending("post")) == 2
        assert len(job_queue.pending("post", 2)) == 1
        assert len(job_queue.pending(index_version=1)) == 2
        assert job_queue.size() == 3

    @pytest.mark.asyncio
    async def test_clear(self, job_queue):
        """clear() drops every job."""
        await job_queue.enqueue(IndexingJob(1, "post", 1))

        job_queue.clear()

        assert job_queue.pending() == []


class TestIndexingQueue:
    """Tests for IndexingQueue.queue_object()."""

    @pytest.mark.asyncio
    async def test_stamps_current_version(self, job_queue, state):
        """Jobs without an explicit version target the current version."""
        queue = IndexingQueue(job_queue, state)

        job = await queue.queue_object(42, "post")

        assert job.index_version == 1
        assert job.options == {}

    @pytest.mark.asyncio
    async def test_stamps_override(self, job_queue, state, registry):
        """An override changes the version new jobs target."""
        await registry.add_version("post")
        queue = IndexingQueue(job_queue, state)

        async with state.override("post", 2):
            job = await queue.queue_object(42, "post")

        assert job.index_version == 2

    @pytest.mark.asyncio
    async def test_explicit_version(self, job_queue, state):
        """An explicit int index_version option wins."""
        queue = IndexingQueue(job_queue, state)

        job = await queue.queue_object(42, "post", {"index_version": 3})

        assert job.index_version == 3
        assert job.options == {"index_version": 3}

    @pytest.mark.asyncio
    async def test_non_int_version_ignored(self, job_queue, state):
        """Non-integer index_version options fall back to the current version."""
        queue = IndexingQueue(job_queue, state)

        first = await queue.queue_object(1, "post", {"index_version": "2"})
        second = await queue.queue_object(2, "post", {"index_version": True})

        assert first.index_version == 1
        assert second.index_version == 1

    @pytest.mark.asyncio
    async def test_caller_options_not_mutated(self, job_queue, state):
        """The caller's options mapping is copied."""
        queue = IndexingQueue(job_queue, state)
        options = {"priority": "high"}

        job = await queue.queue_object(1, "post", options)
        job.options["extra"] = True

        assert options == {"priority": "high"}

    @pytest.mark.asyncio
    async def test_observers_notified(self, job_queue, state):
        """Observers see every successful enqueue with the stamped version."""
        observer = RecordingObserver()
        queue = IndexingQueue(job_queue, state, observers=[observer])

        await queue.queue_object(42, "post", {"priority": "high"})

        assert observer.calls == [(42, "post", {"priority": "high"}, 1)]

    @pytest.mark.asyncio
    async def test_duplicate_is_observed(self, job_queue, state):
        """Duplicates return None but are still reported to observers."""
        observer = RecordingObserver()
        queue = IndexingQueue(job_queue, state)
        queue.add_observer(observer)

        assert await queue.queue_object(42, "post") is not None
        assert await queue.queue_object(42, "post") is None

        assert observer.calls == [(42, "post", {}, 1), (42, "post", {}, 1)]
        assert job_queue.size() == 1

    @pytest.mark.asyncio
    async def test_added_observers_are_notified(self, job_queue, state):
        """Observers added later see calls made after they were added."""
        early = RecordingObserver()
        late = RecordingObserver()
        queue = IndexingQueue(job_queue, state, observers=[early])

        await queue.queue_object(1, "post")
        queue.add_observer(late)
        await queue.queue_object(2, "post")

        assert [call[0] for call in early.calls] == [1, 2]
        assert [call[0] for call in late.calls] == [2]

    @pytest.mark.asyncio
    async def test_full_queue_propagates(self, state):
        """Queue capacity errors reach the caller and observers see nothing."""
        observer = RecordingObserver()
        queue = IndexingQueue(JobQueue(max_pending=1), state, observers=[observer])
        await queue.queue_object(1, "post")

        with pytest.raises(QueueFullError):
            await queue.queue_object(2, "post")

        assert len(observer.calls) == 1
