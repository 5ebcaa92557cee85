"""
Indexable type registry.

The IndexableRegistry knows every content type the search layer indexes,
identified by a stable slug ("post", "user", ...). Version sets, the current
version overrides and the replication ledger are all keyed by these slugs.

Invariants:
    - Slugs are unique
    - A slug may be unregistered at runtime; replication skips unknown slugs

Example:
    >>> registry = IndexableRegistry()
    >>> registry.register(Indexable("post", "Posts"))
    >>> registry.require("post")
    Indexable(slug='post', label='Posts')
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Dict, Optional
import logging

from .versioning.errors import UnresolvableTypeError

logger = logging.getLogger(__name__)

# Global registry instance
_global_indexables: Optional[IndexableRegistry] = None
_indexables_lock = threading.Lock()


class DuplicateRegistrationError(Exception):
    """Raised when attempting to register a slug twice."""
    pass


@dataclass(frozen=True)
class Indexable:
    """A content type indexed by the search layer.

    Attributes:
        slug: Stable identifier, used as the key for version data
        label: Human-readable name
    """

    slug: str
    label: str = ""

    def __post_init__(self) -> None:
        if not self.slug:
            raise ValueError("Indexable slug must not be empty")


class IndexableRegistry:
    """Registry of indexable types, by slug.

    Thread-safety:
        - Registration and removal are thread-safe (uses internal lock)
        - Lookups are lock-free
    """

    def __init__(self) -> None:
        self._indexables: Dict[str, Indexable] = {}
        self._lock = threading.Lock()

    def register(self, indexable: Indexable) -> None:
        """Register an indexable type.

        Raises:
            DuplicateRegistrationError: If the slug is already registered
        """
        with self._lock:
            if indexable.slug in self._indexables:
                raise DuplicateRegistrationError(
                    f"Indexable '{indexable.slug}' already registered"
                )
            self._indexables[indexable.slug] = indexable
            logger.debug(f"Registered indexable: {indexable.slug}")

    def unregister(self, slug: str) -> Optional[Indexable]:
        """Remove an indexable type, returning it if it was registered."""
        with self._lock:
            return self._indexables.pop(slug, None)

    def get(self, slug: str) -> Optional[Indexable]:
        """Get an indexable by slug, or None."""
        return self._indexables.get(slug)

    def require(self, slug: str) -> Indexable:
        """Get an indexable by slug.

        Raises:
            UnresolvableTypeError: If the slug is not registered
        """
        indexable = self._indexables.get(slug)
        if indexable is None:
            raise UnresolvableTypeError(slug)
        return indexable

    def slugs(self) -> list[str]:
        """Registered slugs, in registration order."""
        return list(self._indexables.keys())

    def __contains__(self, slug: object) -> bool:
        return slug in self._indexables

    def __iter__(self) -> Iterator[Indexable]:
        return iter(list(self._indexables.values()))

    def __len__(self) -> int:
        return len(self._indexables)


def get_indexables() -> IndexableRegistry:
    """Get the process-wide indexable registry, creating it if needed."""
    global _global_indexables
    with _indexables_lock:
        if _global_indexables is None:
            _global_indexables = IndexableRegistry()
        return _global_indexables


def reset_indexables() -> None:
    """Reset the process-wide indexable registry (for testing only)."""
    global _global_indexables
    with _indexables_lock:
        _global_indexables = None
