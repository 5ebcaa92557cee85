"""
Search index versioning.

This package tracks multiple generations ("versions") of a search index per
indexable type and keeps the inactive generations in step with the active one:
- A version registry persisted in a site- or network-scoped settings store
- A request-scoped "current version" lens, distinct from the active version
- A ledger of every indexing job queued during a request
- End-of-request replication of active-version jobs to every inactive version

Architecture:
    ┌─────────────┐   queue_object   ┌──────────────┐   enqueue   ┌──────────┐
    │ Application │─────────────────▶│ IndexingQueue│────────────▶│ JobQueue │
    └─────────────┘                  └──────┬───────┘             └──────────┘
                                            │ on_object_queued
                                            ▼
                                   ┌──────────────────┐
                                   │ ReplicationLedger│
                                   └────────┬─────────┘
                                            │ drain() at shutdown
                                            ▼
                                   ┌──────────────────┐   override   ┌──────────────┐
                                   │ReplicationEngine │─────────────▶│ VersionState │
                                   └──────────────────┘              └──────┬───────┘
                                                                            │
                                                                            ▼
                                                                   ┌─────────────────┐
                                                                   │ VersionRegistry │
                                                                   │ (SettingsStore) │
                                                                   └─────────────────┘

Invariants:
    - At most one version per type is active; none active means version 1
    - Version numbers are never reused; the first added version is 2
    - Only jobs queued against the active version are replicated
    - Request-scoped state never outlives its RequestContext

How to change safely:
    - All version mutations go through VersionRegistry.update_versions()
    - Keep the persisted layout backward compatible (normalize on read)
    - Never replicate from inactive versions
"""

from ._version import __version__

__all__ = ["__version__"]
