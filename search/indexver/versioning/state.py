"""
Request-scoped current index version.

The "current" version of a type is the version that reads and writes should
target right now. It equals the active version unless it has been overridden
for the duration of a scoped operation, such as replicating indexing jobs to
an inactive version. Overrides are never persisted.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from .errors import InvalidVersionError

if TYPE_CHECKING:
    from .registry import VersionRegistry

logger = logging.getLogger(__name__)


class VersionState:
    """Per-request map of indexable slug to overridden version number.

    One instance per request; not shared between requests and not
    thread-safe.
    """

    def __init__(self, registry: VersionRegistry) -> None:
        self._registry = registry
        self._current_version_by_type: dict[str, int] = {}

    @property
    def overrides(self) -> dict[str, int]:
        """Copy of the active overrides."""
        return dict(self._current_version_by_type)

    async def set_current_version(self, slug: str, version_number: int) -> None:
        """Override the current version for a type.

        Args:
            slug: Indexable type slug
            version_number: Version to use until reset

        Raises:
            InvalidVersionError: If the version does not exist
        """
        versions = await self._registry.get_versions(slug)

        if version_number not in versions:
            raise InvalidVersionError(
                f"The requested index version {version_number} does not exist",
                slug=slug,
                version_number=version_number,
            )

        self._current_version_by_type[slug] = version_number
        logger.debug(f"Current index version for '{slug}' set to {version_number}")

    def reset_current_version(self, slug: str) -> None:
        """Drop any override, reverting to the active version."""
        self._current_version_by_type.pop(slug, None)

    async def get_current_version_number(self, slug: str) -> int:
        """The override if one is set, otherwise the active version number."""
        override = self._current_version_by_type.get(slug)

        if isinstance(override, int):
            return override

        return await self._registry.get_active_version_number(slug)

    @asynccontextmanager
    async def override(self, slug: str, version_number: int) -> AsyncIterator[None]:
        """Use a version as current for the duration of the block.

        Raises:
            InvalidVersionError: If the version does not exist (nothing is set)
        """
        await self.set_current_version(slug, version_number)
        try:
            yield
        finally:
            self.reset_current_version(slug)
