"""
Unit tests for the request-scoped version state.

Tests cover:
- Current version defaults to the active version
- Setting and resetting overrides
- Scoped overrides
"""

import pytest

from search.indexver.versioning import InvalidVersionError, VersionState


@pytest.fixture
def state(registry):
    """Create a version state over the registry."""
    return VersionState(registry)


class TestVersionState:
    """Tests for VersionState."""

    @pytest.mark.asyncio
    async def test_current_defaults_to_active(self, state, registry):
        """Without an override the current version is the active one."""
        assert await state.get_current_version_number("post") == 1

        await registry.add_version("post")
        await registry.activate_version("post", 2)

        assert await state.get_current_version_number("post") == 2

    @pytest.mark.asyncio
    async def test_set_current_version(self, state, registry):
        """An override takes precedence over the active version."""
        await registry.add_version("post")

        await state.set_current_version("post", 2)

        assert await state.get_current_version_number("post") == 2
        assert await registry.get_active_version_number("post") == 1
        assert state.overrides == {"post": 2}

    @pytest.mark.asyncio
    async def test_override_is_per_type(self, state, registry):
        """Overriding one type leaves others on their active version."""
        await registry.add_version("post")
        await state.set_current_version("post", 2)

        assert await state.get_current_version_number("user") == 1

    @pytest.mark.asyncio
    async def test_set_missing_version(self, state):
        """Overriding to an unknown version raises and sets nothing."""
        with pytest.raises(InvalidVersionError) as exc_info:
            await state.set_current_version("post", 3)

        assert exc_info.value.code == "invalid-index-version"
        assert state.overrides == {}

    @pytest.mark.asyncio
    async def test_set_implicit_version_one(self, state):
        """The implicit version 1 is a valid override target."""
        await state.set_current_version("post", 1)

        assert state.overrides == {"post": 1}

    @pytest.mark.asyncio
    async def test_reset(self, state, registry):
        """Resetting reverts to the active version."""
        await registry.add_version("post")
        await state.set_current_version("post", 2)

        state.reset_current_version("post")

        assert await state.get_current_version_number("post") == 1

    def test_reset_without_override(self, state):
        """Resetting a type with no override is a no-op."""
        state.reset_current_version("post")

        assert state.overrides == {}

    @pytest.mark.asyncio
    async def test_override_context(self, state, registry):
        """The override applies inside the block only."""
        await registry.add_version("post")

        async with state.override("post", 2):
            assert await state.get_current_version_number("post") == 2

        assert await state.get_current_version_number("post") == 1

    @pytest.mark.asyncio
    async def test_override_context_resets_on_error(self, state, registry):
        """The override is removed when the block raises."""
        await registry.add_version("post")

        with pytest.raises(RuntimeError):
            async with state.override("post", 2):
                raise RuntimeError("boom")

        assert state.overrides == {}

    @pytest.mark.asyncio
    async def test_override_context_missing_version(self, state):
        """An unknown version never enters the block."""
        entered = False

        with pytest.raises(InvalidVersionError):
            async with state.override("post", 5):
                entered = True

        assert not entered
        assert state.overrides == {}

    @pytest.mark.asyncio
    async def test_overrides_property_is_a_copy(self, state):
        """Mutating overrides does not change the state."""
        await state.set_current_version("post", 1)

        state.overrides.clear()

        assert state.overrides == {"post": 1}
