"""Unit tests for rubick.console.tree.ResourceTree."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from rubick.cache.host_cache import HostResourceCache
from rubick.console.tree import ResourceTree
from rubick.models.resources import EntryState, ResourceKind, Selection, SelectionKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _counting_cache() -> tuple[HostResourceCache, list[tuple[ResourceKind, str]]]:
    calls: list[tuple[ResourceKind, str]] = []

    def make(kind: ResourceKind):  # type: ignore[no-untyped-def]
        async def fetch(host_id: str) -> list[str]:
            calls.append((kind, host_id))
            return [f"{host_id}-{kind.value}"]

        return fetch

    return HostResourceCache({kind: make(kind) for kind in ResourceKind}), calls


# ---------------------------------------------------------------------------
# Host expansion
# ---------------------------------------------------------------------------


class TestHostExpansion:
    @pytest.mark.asyncio
    async def test_expand_loads_host_resources(self) -> None:
        cache, calls = _counting_cache()
        tree = ResourceTree(cache)

        fut = tree.toggle_host_expand("h1")
        assert fut is not None
        await fut

        assert tree.is_host_expanded("h1") is True
        snapshot = tree.host_resources("h1")
        assert snapshot is not None
        assert snapshot.state == EntryState.LOADED
        assert snapshot.containers == ("h1-container",)
        assert len(calls) == 5

    @pytest.mark.asyncio
    async def test_collapse_evicts_host(self) -> None:
        cache, _ = _counting_cache()
        tree = ResourceTree(cache)
        await tree.toggle_host_expand("h1")  # type: ignore[misc]

        result = tree.toggle_host_expand("h1")

        assert result is None
        assert tree.is_host_expanded("h1") is False
        assert tree.host_resources("h1") is None

    @pytest.mark.asyncio
    async def test_reexpand_after_collapse_fetches_again(self) -> None:
        cache, calls = _counting_cache()
        tree = ResourceTree(cache)
        await tree.toggle_host_expand("h1")  # type: ignore[misc]
        tree.toggle_host_expand("h1")

        await tree.toggle_host_expand("h1")  # type: ignore[misc]

        assert len(calls) == 10

    @pytest.mark.asyncio
    async def test_expand_with_loaded_entry_reuses_cache(self) -> None:
        cache, calls = _counting_cache()
        await cache.load("h1")
        tree = ResourceTree(cache)

        await tree.toggle_host_expand("h1")  # type: ignore[misc]

        assert len(calls) == 5

    @pytest.mark.asyncio
    async def test_rapid_toggle_leaves_no_entry(self) -> None:
        cache, _ = _counting_cache()
        tree = ResourceTree(cache)

        fut = tree.toggle_host_expand("h1")
        tree.toggle_host_expand("h1")
        assert fut is not None
        await asyncio.wait_for(fut, timeout=5.0)
        await asyncio.sleep(0)

        assert tree.host_resources("h1") is None
        assert tree.expanded_hosts == frozenset()

    @pytest.mark.asyncio
    async def test_refresh_host_delegates_to_cache(self) -> None:
        cache, calls = _counting_cache()
        tree = ResourceTree(cache)
        await tree.toggle_host_expand("h1")  # type: ignore[misc]

        await tree.refresh_host("h1")

        assert len(calls) == 10
        assert tree.host_resources("h1").generation == 2  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Group expansion
# ---------------------------------------------------------------------------


class TestGroupExpansion:
    def test_toggle_group_never_touches_cache(self) -> None:
        cache = MagicMock(spec=HostResourceCache)
        tree = ResourceTree(cache)

        tree.toggle_group_expand("h1", ResourceKind.IMAGE)
        assert tree.is_group_expanded("h1", ResourceKind.IMAGE) is True
        tree.toggle_group_expand("h1", ResourceKind.IMAGE)
        assert tree.is_group_expanded("h1", ResourceKind.IMAGE) is False

        assert cache.method_calls == []

    def test_groups_are_keyed_by_host_and_kind(self) -> None:
        tree = ResourceTree(MagicMock(spec=HostResourceCache))

        tree.toggle_group_expand("h1", ResourceKind.IMAGE)

        assert tree.is_group_expanded("h2", ResourceKind.IMAGE) is False
        assert tree.is_group_expanded("h1", ResourceKind.VOLUME) is False
        assert tree.expanded_groups == frozenset({("h1", ResourceKind.IMAGE)})


# ---------------------------------------------------------------------------
# Selection and reset
# ---------------------------------------------------------------------------


class TestSelection:
    def test_selection_round_trip(self) -> None:
        tree = ResourceTree(MagicMock(spec=HostResourceCache))
        selection = Selection(host_id="h1", kind=SelectionKind.CONTAINER, id="abc", name="web")

        tree.set_selection(selection)

        assert tree.selection == selection
        assert tree.selected_host_id == "h1"

        tree.clear_selection()
        assert tree.selection is None
        assert tree.selected_host_id is None

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self) -> None:
        cache, _ = _counting_cache()
        tree = ResourceTree(cache)
        await tree.toggle_host_expand("h1")  # type: ignore[misc]
        tree.toggle_group_expand("h1", ResourceKind.NETWORK)
        tree.set_selection(Selection(host_id="h1", kind=SelectionKind.HOST, id="h1", name="local"))

        tree.reset()

        assert len(cache) == 0
        assert tree.expanded_hosts == frozenset()
        assert tree.expanded_groups == frozenset()
        assert tree.selection is None
