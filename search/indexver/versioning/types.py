"""
Core type definitions for index versioning.

This module defines the version record and the helpers that turn whatever is
found in the settings store into well-formed records:
- IndexVersion: One generation of an index for one indexable type
- VersionSet: Mapping of version number to IndexVersion for one type
- normalize_version / normalize_version_set: Tolerant readers for stored data

Invariants:
    - Version numbers are positive integers, never reused
    - At most one version per type has active=True
    - No stored versions means version 1 exists and is active
    - Normalization never raises and never drops fields

How to change safely:
    - New fields must default to None so old stored records stay readable
    - Add new fields to VERSION_FIELDS and to_dict() together

Example:
    >>> normalize_version({"number": 2, "active": False})
    IndexVersion(number=2, active=False, created_time=None, activated_time=None)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

VERSION_FIELDS = ("number", "active", "created_time", "activated_time")


@dataclass(frozen=True)
class IndexVersion:
    """One generation of a search index.

    Attributes:
        number: Version number (unique per type, immutable)
        active: Whether this version is the active one
        created_time: Creation time (Unix seconds), None if unknown
        activated_time: Last activation time (Unix seconds), None if never activated
    """

    number: Optional[int] = None
    active: Optional[bool] = None
    created_time: Optional[int] = None
    activated_time: Optional[int] = None

    @property
    def is_active(self) -> bool:
        """True only for an explicit active=True."""
        return self.active is True

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted dictionary layout."""
        return {
            "number": self.number,
            "active": self.active,
            "created_time": self.created_time,
            "activated_time": self.activated_time,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexVersion:
        """Create from dictionary representation. Missing fields become None."""
        return cls(**{name: data.get(name) for name in VERSION_FIELDS})


# Version number -> IndexVersion, for one indexable type
VersionSet = Dict[int, IndexVersion]


def default_version_set() -> VersionSet:
    """The version set of a type that has never stored any versions."""
    return {
        1: IndexVersion(
            number=1,
            active=True,
            created_time=None,  # Unknown, predates versioning
            activated_time=None,
        )
    }


def normalize_version(raw: Any) -> IndexVersion:
    """Normalize one stored version record.

    Args:
        raw: Whatever was stored (mapping, IndexVersion, or garbage)

    Returns:
        IndexVersion with every field present (None when missing)
    """
    if isinstance(raw, IndexVersion):
        return raw
    if not isinstance(raw, Mapping):
        return IndexVersion()
    return IndexVersion.from_dict(raw)


def _coerce_version_number(key: Any) -> Optional[int]:
    # JSON-backed stores hand mapping keys back as strings
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str):
        # isdigit() also accepts characters int() rejects, such as "²"
        try:
            return int(key) if key.strip().isdigit() else None
        except ValueError:
            return None
    return None


def normalize_version_set(raw: Any) -> VersionSet:
    """Normalize a stored version set.

    Keys are coerced to int; entries whose key is not a version number are
    skipped. Returns an empty dict for anything that is not a mapping.
    """
    if not isinstance(raw, Mapping):
        return {}

    versions: VersionSet = {}
    for key, value in raw.items():
        number = _coerce_version_number(key)
        if number is None:
            logger.warning(f"Ignoring stored index version with invalid key {key!r}")
            continue
        versions[number] = normalize_version(value)
    return versions


def serialize_version_set(versions: Mapping[int, Any]) -> dict[int, dict[str, Any]]:
    """Convert a version set to its persisted layout, normalizing each entry."""
    return {number: normalize_version(version).to_dict() for number, version in versions.items()}
