"""
Replication of indexing work from the active index version to inactive ones.

- ReplicationLedger: Request-scoped record of queued jobs by type and version
- ReplicationEngine: End-of-request replay onto every inactive version
"""

from .engine import ReplicationEngine, ReplicationResult
from .ledger import LedgerEntry, LedgerSnapshot, ReplicationLedger

__all__ = [
    "ReplicationLedger",
    "LedgerEntry",
    "LedgerSnapshot",
    "ReplicationEngine",
    "ReplicationResult",
]
