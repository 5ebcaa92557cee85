"""
Versioning module.

This module provides the index version lifecycle:
- Version records and tolerant normalization (IndexVersion, VersionSet)
- The durable version registry (VersionRegistry)
- The request-scoped current-version lens (VersionState)
- Typed errors for operator tooling

Invariants:
    - Version numbers are immutable and never reused
    - At most one active version per type; none means version 1
    - "Current" is a per-request override of "active", never persisted
"""

from .errors import (
    ActivationError,
    AllocationError,
    InvalidVersionError,
    UnresolvableTypeError,
    VersioningError,
    VersionPersistError,
)
from .registry import VersionRegistry
from .state import VersionState
from .types import (
    IndexVersion,
    VersionSet,
    default_version_set,
    normalize_version,
    normalize_version_set,
)

__all__ = [
    # Types
    "IndexVersion",
    "VersionSet",
    "default_version_set",
    "normalize_version",
    "normalize_version_set",
    # Registry
    "VersionRegistry",
    "VersionState",
    # Errors
    "VersioningError",
    "InvalidVersionError",
    "AllocationError",
    "VersionPersistError",
    "ActivationError",
    "UnresolvableTypeError",
]
