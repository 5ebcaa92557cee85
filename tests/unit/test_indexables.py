"""
Unit tests for the indexable type registry.
"""

import pytest

from search.indexver.indexables import (
    DuplicateRegistrationError,
    Indexable,
    IndexableRegistry,
    get_indexables,
    reset_indexables,
)
from search.indexver.versioning import UnresolvableTypeError


class TestIndexable:
    """Tests for Indexable."""

    def test_empty_slug_rejected(self):
        """Indexables need a slug."""
        with pytest.raises(ValueError):
            Indexable("")


class TestIndexableRegistry:
    """Tests for IndexableRegistry."""

    def test_register_and_get(self, indexables):
        """Registered types can be looked up by slug."""
        assert indexables.get("post") == Indexable("post", "Posts")
        assert indexables.get("comment") is None
        assert "post" in indexables
        assert "comment" not in indexables

    def test_duplicate_registration(self, indexables):
        """A slug can only be registered once."""
        with pytest.raises(DuplicateRegistrationError):
            indexables.register(Indexable("post"))

    def test_require_unknown(self, indexables):
        """require() raises for unknown slugs."""
        with pytest.raises(UnresolvableTypeError) as exc_info:
            indexables.require("comment")

        assert exc_info.value.code == "unresolvable-type"
        assert exc_info.value.slug == "comment"

    def test_unregister(self, indexables):
        """Unregistering returns the removed type."""
        removed = indexables.unregister("user")

        assert removed == Indexable("user", "Users")
        assert indexables.unregister("user") is None
        assert indexables.slugs() == ["post"]

    def test_iteration_and_length(self, indexables):
        """The registry iterates in registration order."""
        assert [indexable.slug for indexable in indexables] == ["post", "user"]
        assert len(indexables) == 2


class TestGlobalIndexables:
    """Tests for the process-wide registry."""

    def test_singleton_and_reset(self):
        """get_indexables() returns one instance until reset."""
        reset_indexables()
        first = get_indexables()

        assert get_indexables() is first

        reset_indexables()
        assert get_indexables() is not first
        assert isinstance(get_indexables(), IndexableRegistry)
        reset_indexables()
