"""Host resource cache data structures."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType


class ResourceKind(StrEnum):
    """Resource listings cached per host."""

    CONTAINER = "container"
    IMAGE = "image"
    VOLUME = "volume"
    NETWORK = "network"
    COMPOSE_PROJECT = "compose_project"


class EntryState(StrEnum):
    """Lifecycle of a host cache entry."""

    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"


class SelectionKind(StrEnum):
    """Kinds of tree items that can be selected in the console."""

    HOST = "host"
    CONTAINER = "container"
    IMAGE = "image"
    VOLUME = "volume"
    NETWORK = "network"
    COMPOSE_PROJECT = "compose_project"


def _empty_records() -> Mapping[ResourceKind, tuple[object, ...]]:
    return MappingProxyType({kind: () for kind in ResourceKind})


@dataclass(frozen=True)
class CacheEntrySnapshot:
    """Immutable, point-in-time view of a host's cache entry.

    Returned by ``HostResourceCache.get``. The tuples inside ``records`` are
    the cached sequences themselves; they are never mutated in place, a load
    replaces them as a whole.
    """

    host_id: str
    state: EntryState
    generation: int
    records: Mapping[ResourceKind, tuple[object, ...]] = field(default_factory=_empty_records)
    loaded_at: datetime | None = None
    failed_kinds: frozenset[ResourceKind] = frozenset()

    @property
    def loaded(self) -> bool:
        return self.state == EntryState.LOADED

    @property
    def loading(self) -> bool:
        return self.state == EntryState.LOADING

    def of(self, kind: ResourceKind) -> tuple[object, ...]:
        """Return the cached sequence for *kind* (empty tuple if never loaded)."""
        return self.records.get(kind, ())

    @property
    def containers(self) -> tuple[object, ...]:
        return self.of(ResourceKind.CONTAINER)

    @property
    def images(self) -> tuple[object, ...]:
        return self.of(ResourceKind.IMAGE)

    @property
    def volumes(self) -> tuple[object, ...]:
        return self.of(ResourceKind.VOLUME)

    @property
    def networks(self) -> tuple[object, ...]:
        return self.of(ResourceKind.NETWORK)

    @property
    def compose_projects(self) -> tuple[object, ...]:
        return self.of(ResourceKind.COMPOSE_PROJECT)


@dataclass(frozen=True)
class LoadDiagnostic:
    """Summary of the resource kinds that failed during one host load.

    Emitted at most once per applied load, only when at least one fetcher
    failed.
    """

    host_id: str
    generation: int
    failures: Mapping[ResourceKind, str]
    occurred_at: datetime

    @property
    def failed_kinds(self) -> list[ResourceKind]:
        return [kind for kind in ResourceKind if kind in self.failures]

    def summary(self) -> str:
        """Return a one-line human readable summary."""
        kinds = ", ".join(kind.value for kind in self.failed_kinds)
        return f"Failed to refresh {kinds} on host {self.host_id}"


@dataclass(frozen=True)
class Selection:
    """The single item currently selected in the console tree."""

    host_id: str
    kind: SelectionKind
    id: str
    name: str
