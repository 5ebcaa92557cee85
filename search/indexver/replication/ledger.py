"""
Replication ledger.

Records every indexing job queued during a request, keyed by indexable type
and by the index version it was queued against, so the replication engine can
replay active-version jobs onto the inactive versions at the end of the
request.

Recording is a synchronous dict append (no I/O, no version lookups), which
makes it safe to call from inside the queueing path, including while the
replication engine itself is queueing jobs.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, NamedTuple

logger = logging.getLogger(__name__)


class LedgerEntry(NamedTuple):
    """One observed queue_object() call."""

    object_id: Any
    options: Dict[str, Any]


# object_type -> index_version -> entries in queue order
LedgerSnapshot = Dict[str, Dict[int, List[LedgerEntry]]]


class ReplicationLedger:
    """Request-scoped record of queued indexing jobs.

    Implements the QueueObserver protocol.
    """

    def __init__(self) -> None:
        self._queued_objects_by_type_and_version: LedgerSnapshot = {}
        self._count = 0

    def on_object_queued(
        self,
        object_id: Any,
        object_type: str,
        options: Mapping[str, Any],
        index_version: int,
    ) -> None:
        """Record a queued job. Synchronous, no I/O.

        Args:
            object_id: Identifier of the queued object
            object_type: Indexable slug
            options: Options passed to queue_object() (copied)
            index_version: Version the job was queued against
        """
        by_version = self._queued_objects_by_type_and_version.setdefault(object_type, {})
        by_version.setdefault(index_version, []).append(
            LedgerEntry(object_id, dict(options or {}))
        )
        self._count += 1

    def entries(self, object_type: str, index_version: int) -> List[LedgerEntry]:
        """Entries recorded for one type and version (copy)."""
        by_version = self._queued_objects_by_type_and_version.get(object_type, {})
        return list(by_version.get(index_version, []))

    def drain(self) -> LedgerSnapshot:
        """Return everything recorded so far and start over empty."""
        snapshot = self._queued_objects_by_type_and_version
        self._queued_objects_by_type_and_version = {}
        if self._count:
            logger.debug(f"Drained {self._count} queued objects from replication ledger")
        self._count = 0
        return snapshot

    def __len__(self) -> int:
        return self._count
