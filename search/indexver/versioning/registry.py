"""
Index version registry.

The VersionRegistry is the durable source of truth for which index versions
exist for each indexable type and which one is active. It provides:
- Lookup of all, one, active and inactive versions
- Allocation of new version numbers
- Activation of a version (deactivating all others)
- A single persistence primitive (update_versions)

All version sets live in one option of the settings store, keyed by
indexable slug. Whether that option is site-scoped or network-scoped is
decided by a single predicate, in one place (scope()).

Invariants:
    - A type with no stored versions has exactly version 1, active
    - Version numbers are allocated as max(existing) + 1, never below 2
    - After activation exactly one version is active
    - Malformed stored data degrades to defaults, never raises

How to change safely:
    - Route every write through update_versions()
    - Never renumber or delete stored versions
    - Concurrent writers in different processes are last-writer-wins
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any, Optional, Tuple, Union

from ..settings import SettingsError, SettingsScope, SettingsStore
from .errors import (
    ActivationError,
    AllocationError,
    InvalidVersionError,
    VersionPersistError,
)
from .types import (
    IndexVersion,
    VersionSet,
    default_version_set,
    normalize_version_set,
    serialize_version_set,
)

logger = logging.getLogger(__name__)

DEFAULT_OPTION_KEY = "index_versions"


class VersionRegistry:
    """Durable registry of index versions per indexable type.

    Thread-safety:
        - Mutations within one process are serialized by an asyncio lock
        - Reads are lock-free and always go to the settings store

    Example:
        >>> registry = VersionRegistry(store)
        >>> new_version = await registry.add_version("post")
        >>> new_version.number
        2
        >>> await registry.activate_version("post", 2)
        >>> await registry.get_active_version_number("post")
        2
    """

    def __init__(
        self,
        store: SettingsStore,
        option_key: str = DEFAULT_OPTION_KEY,
        is_network_mode: Union[bool, Callable[[], bool], None] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Settings store holding the versions option
            option_key: Option under which all version sets are stored
            is_network_mode: Network mode flag or predicate; network mode
                stores versions network-wide instead of per site
            clock: Returns the current Unix time in seconds (for tests)
        """
        self._store = store
        self._option_key = option_key
        if is_network_mode is None or isinstance(is_network_mode, bool):
            flag = bool(is_network_mode)
            self._is_network_mode: Callable[[], bool] = lambda: flag
        else:
            self._is_network_mode = is_network_mode
        self._clock = clock or (lambda: int(time.time()))
        self._write_lock = asyncio.Lock()

    @property
    def option_key(self) -> str:
        """Option key holding every version set."""
        return self._option_key

    def scope(self) -> SettingsScope:
        """Storage scope for version data."""
        if self._is_network_mode():
            return SettingsScope.NETWORK
        return SettingsScope.SITE

    async def _load_option(self) -> dict[str, Any]:
        stored = await self._store.load(self._option_key, self.scope(), {})
        if not isinstance(stored, Mapping):
            logger.warning(
                f"Option '{self._option_key}' holds {type(stored).__name__}, expected a mapping"
            )
            return {}
        return dict(stored)

    async def get_versions(self, slug: str) -> VersionSet:
        """Get all versions for an indexable type.

        Args:
            slug: Indexable type slug

        Returns:
            Normalized VersionSet; the implicit version 1 when nothing is stored
        """
        option = await self._load_option()
        versions = normalize_version_set(option.get(slug))

        if not versions:
            return default_version_set()

        return versions

    async def get_version(self, slug: str, version_number: int) -> Optional[IndexVersion]:
        """Get one version, or None if it does not exist."""
        versions = await self.get_versions(slug)
        return versions.get(version_number)

    @staticmethod
    def _find_active(versions: VersionSet) -> Optional[Tuple[int, IndexVersion]]:
        # First match wins if stored data marks several versions active
        for number, version in versions.items():
            if version.is_active:
                return number, version
        return None

    async def get_active_version(self, slug: str) -> Optional[IndexVersion]:
        """Get the version marked active, or None if none is marked."""
        found = self._find_active(await self.get_versions(slug))
        if found is None:
            return None
        return found[1]

    async def get_active_version_number(self, slug: str) -> int:
        """Get the active version number, defaulting to 1."""
        found = self._find_active(await self.get_versions(slug))
        if found is None:
            return 1
        return found[0]

    async def get_inactive_versions(self, slug: str) -> VersionSet:
        """Get every version except the active one."""
        versions = await self.get_versions(slug)
        found = self._find_active(versions)
        active_number = found[0] if found is not None else 1

        versions.pop(active_number, None)
        return versions

    @staticmethod
    def get_next_version_number(versions: Any) -> int:
        """Determine the next version number for a set of existing versions.

        Versions start at 1, so the first explicitly added version is 2 even
        when nothing has been stored yet.

        Args:
            versions: Existing VersionSet (or any mapping keyed by number)

        Returns:
            max(existing numbers) + 1, never less than 2
        """
        highest: Optional[int] = None

        if isinstance(versions, Mapping) and versions:
            numbers = [
                key for key in versions.keys()
                if isinstance(key, int) and not isinstance(key, bool)
            ]
            if numbers:
                highest = max(numbers)

        if highest is None or highest < 2:
            return 2
        return highest + 1

    async def add_version(self, slug: str) -> IndexVersion:
        """Create a new, inactive version for an indexable type.

        Args:
            slug: Indexable type slug

        Returns:
            The new IndexVersion

        Raises:
            AllocationError: If the existing versions cannot be read
            VersionPersistError: If the new version set cannot be saved
        """
        async with self._write_lock:
            try:
                versions = await self.get_versions(slug)
            except SettingsError as e:
                raise AllocationError(
                    f"Unable to determine next index version: {e}", slug=slug
                )

            new_number = self.get_next_version_number(versions)
            new_version = IndexVersion(
                number=new_number,
                active=False,
                created_time=self._clock(),
                activated_time=None,
            )
            versions[new_number] = new_version

            if not await self._write_versions(slug, versions):
                raise VersionPersistError(
                    f"Failed to save index version {new_number}", slug=slug
                )

        logger.info(f"Added index version {new_number} for '{slug}'")
        return new_version

    async def activate_version(self, slug: str, version_number: int) -> None:
        """Make a version the active one.

        Every other version of the type is marked inactive in the same write.

        Args:
            slug: Indexable type slug
            version_number: Version to activate

        Raises:
            InvalidVersionError: If the version does not exist
            ActivationError: If the change cannot be saved
        """
        async with self._write_lock:
            versions = await self.get_versions(slug)

            if version_number not in versions:
                raise InvalidVersionError(
                    f"The index version {version_number} was not found",
                    slug=slug,
                    version_number=version_number,
                )

            now = self._clock()
            updated: VersionSet = {}
            for number, version in versions.items():
                if number == version_number:
                    updated[number] = replace(version, active=True, activated_time=now)
                else:
                    updated[number] = replace(version, active=False)

            if not await self._write_versions(slug, updated):
                raise ActivationError(
                    f"The index version {version_number} failed to activate",
                    slug=slug,
                    version_number=version_number,
                )

        logger.info(f"Activated index version {version_number} for '{slug}'")

    async def update_versions(self, slug: str, versions: Mapping[int, Any]) -> bool:
        """Save the version set of an indexable type.

        Args:
            slug: Indexable type slug
            versions: VersionSet (or mapping of raw version dicts)

        Returns:
            True if the versions were saved, False otherwise
        """
        async with self._write_lock:
            return await self._write_versions(slug, versions)

    async def _write_versions(self, slug: str, versions: Mapping[int, Any]) -> bool:
        try:
            option = await self._load_option()
            option[slug] = serialize_version_set(versions)
            saved = await self._store.save(self._option_key, option, self.scope())
        except SettingsError as e:
            logger.error(f"Failed to save index versions for '{slug}': {e}")
            return False

        if not saved:
            logger.error(f"Settings store rejected index versions for '{slug}'")
        return bool(saved)
