"""Expansion and selection state of the console's resource tree.

The tree shows hosts, under each host one group per resource kind, and the
resources inside each group. Expanding a host loads its resources through
the :class:`HostResourceCache`; collapsing it evicts them. Group expansion
and selection are purely presentational.
"""

from __future__ import annotations

import asyncio

from rubick.cache.host_cache import HostResourceCache
from rubick.models.resources import CacheEntrySnapshot, ResourceKind, Selection
from rubick.observability.logging import get_logger

GroupKey = tuple[str, ResourceKind]


class ResourceTree:
    """Tracks which hosts and groups are expanded and which item is selected."""

    def __init__(self, cache: HostResourceCache) -> None:
        self._cache = cache
        self._expanded_hosts: set[str] = set()
        self._expanded_groups: set[GroupKey] = set()
        self._selection: Selection | None = None
        self._log = get_logger("console.tree")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selection(self) -> Selection | None:
        return self._selection

    @property
    def selected_host_id(self) -> str | None:
        return self._selection.host_id if self._selection is not None else None

    def set_selection(self, selection: Selection | None) -> None:
        self._selection = selection

    def clear_selection(self) -> None:
        self._selection = None

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    @property
    def expanded_hosts(self) -> frozenset[str]:
        return frozenset(self._expanded_hosts)

    @property
    def expanded_groups(self) -> frozenset[GroupKey]:
        return frozenset(self._expanded_groups)

    def toggle_host_expand(self, host_id: str) -> asyncio.Future[None] | None:
        """Expand or collapse *host_id*.

        Expanding starts (or reuses) the host's resource load and returns its
        completion future. Collapsing drops the host's cached resources and
        returns None.
        """
        if host_id in self._expanded_hosts:
            self._expanded_hosts.discard(host_id)
            self._cache.evict(host_id)
            self._log.debug("host_collapsed", host_id=host_id)
            return None

        self._expanded_hosts.add(host_id)
        self._log.debug("host_expanded", host_id=host_id)
        return self._cache.load(host_id)

    def toggle_group_expand(self, host_id: str, kind: ResourceKind) -> None:
        key = (host_id, kind)
        if key in self._expanded_groups:
            self._expanded_groups.discard(key)
        else:
            self._expanded_groups.add(key)

    def is_host_expanded(self, host_id: str) -> bool:
        return host_id in self._expanded_hosts

    def is_group_expanded(self, host_id: str, kind: ResourceKind) -> bool:
        return (host_id, kind) in self._expanded_groups

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def host_resources(self, host_id: str) -> CacheEntrySnapshot | None:
        return self._cache.get(host_id)

    def refresh_host(self, host_id: str) -> asyncio.Future[None]:
        """Force a reload of *host_id*'s resources."""
        return self._cache.refresh(host_id)

    def reset(self) -> None:
        """Drop all cached resources, expansion state and the selection."""
        self._cache.clear_all()
        self._expanded_hosts.clear()
        self._expanded_groups.clear()
        self._selection = None
