"""Per-host resource cache for the console tree.

Keeps one entry per host id holding the five resource listings (containers,
images, volumes, networks, compose projects) fetched for that host.

Entry lifecycle
---------------
EMPTY    - never fetched, or reset by :meth:`HostResourceCache.refresh`.
LOADING  - a fan-out fetch is in flight; further ``load`` calls join it.
LOADED   - the last fetch finished; ``load`` returns without fetching.

Generations
-----------
Every fetch launched for an entry carries the entry's generation number,
bumped each time a fetch starts. When the five listings have settled, the
results are applied only if the entry is still the one cached for the host
and its generation is unchanged. Anything else means a ``refresh``, ``evict``
or ``clear_all`` happened in between, and the results are dropped silently.
Superseded fetch tasks are also cancelled, but the generation check alone
decides what becomes visible.

Failures
--------
A failing listing keeps that kind's previous records; the other kinds are
still applied and the entry still becomes LOADED. The failed kinds of one
load are reported once through the diagnostic sink.

All state transitions happen synchronously inside ``load``, ``refresh``,
``evict`` and ``clear_all``; the only suspension points are the fetcher calls.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType

from rubick.api.client import TransportError
from rubick.models.resources import CacheEntrySnapshot, EntryState, LoadDiagnostic, ResourceKind
from rubick.observability.logging import get_logger
from rubick.observability.metrics import (
    host_cache_entries,
    host_cache_fetch_failures_total,
    host_cache_load_duration_seconds,
    host_cache_loads_total,
    host_cache_stale_discards_total,
)

Fetcher = Callable[[str], Awaitable[Sequence[object]]]
DiagnosticSink = Callable[[LoadDiagnostic], Awaitable[None]]


@dataclass
class _CacheEntry:
    """Mutable cache entry, owned exclusively by ``HostResourceCache``."""

    host_id: str
    records: dict[ResourceKind, tuple[object, ...]] = field(
        default_factory=lambda: {kind: () for kind in ResourceKind}
    )
    state: EntryState = EntryState.EMPTY
    generation: int = 0
    loaded_at: datetime | None = None
    failed_kinds: frozenset[ResourceKind] = frozenset()
    # Completion of the in-flight load; None unless LOADING
    done: asyncio.Future[None] | None = None
    task: asyncio.Task[None] | None = None

    def snapshot(self) -> CacheEntrySnapshot:
        return CacheEntrySnapshot(
            host_id=self.host_id,
            state=self.state,
            generation=self.generation,
            records=MappingProxyType(dict(self.records)),
            loaded_at=self.loaded_at,
            failed_kinds=self.failed_kinds,
        )


class HostResourceCache:
    """Load-once, per-host cache of resource listings.

    Fetchers are injected, one per :class:`ResourceKind`; the diagnostic sink
    is an optional async callable receiving one :class:`LoadDiagnostic` per
    load that had failures.

    Example::

        cache = HostResourceCache(api_client.fetchers(), on_diagnostic=dispatcher.dispatch)
        await cache.load("host-1")
        entry = cache.get("host-1")
    """

    def __init__(
        self,
        fetchers: Mapping[ResourceKind, Fetcher],
        on_diagnostic: DiagnosticSink | None = None,
    ) -> None:
        missing = [kind.value for kind in ResourceKind if kind not in fetchers]
        if missing:
            raise ValueError(f"HostResourceCache requires a fetcher for every resource kind; missing: {missing}")
        self._fetchers: dict[ResourceKind, Fetcher] = {kind: fetchers[kind] for kind in ResourceKind}
        self._on_diagnostic = on_diagnostic
        self._entries: dict[str, _CacheEntry] = {}
        # Strong references to running tasks so they are not garbage collected mid-flight
        self._tasks: set[asyncio.Task[None]] = set()
        self._log = get_logger("cache.host")

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def load(self, host_id: str) -> asyncio.Future[None]:
        """Ensure *host_id*'s resources are loaded, fetching them at most once.

        Returns a future that completes when the entry is LOADED. Callers
        arriving while a load is in flight share its completion; callers
        arriving after it return an already-completed future. The future
        never fails because of fetch errors.

        Raises:
            RuntimeError: if called outside a running event loop.
        """
        loop = asyncio.get_running_loop()
        entry = self._entries.get(host_id)
        if entry is None:
            entry = self._create_entry(host_id)

        if entry.state == EntryState.LOADING and entry.done is not None:
            return asyncio.shield(entry.done)
        if entry.state == EntryState.LOADED:
            return _completed_future(loop)
        return self._start_load(loop, entry, trigger="load")

    def refresh(self, host_id: str) -> asyncio.Future[None]:
        """Discard *host_id*'s load state and fetch everything again.

        A load still in flight is superseded: its results are never applied,
        and its waiters complete together with this refresh. Cached records
        stay readable until the new results replace them.
        """
        loop = asyncio.get_running_loop()
        entry = self._entries.get(host_id)
        superseded: asyncio.Future[None] | None = None
        if entry is None:
            entry = self._create_entry(host_id)
        else:
            superseded = self._supersede(entry)
        entry.state = EntryState.EMPTY

        waiter = self._start_load(loop, entry, trigger="refresh")
        if superseded is not None and entry.done is not None:
            _chain(entry.done, superseded)
        return waiter

    def evict(self, host_id: str) -> None:
        """Remove *host_id*'s entry; an in-flight load for it is discarded."""
        entry = self._entries.pop(host_id, None)
        if entry is None:
            return
        superseded = self._supersede(entry)
        # The detached entry must never match a pending fetch again
        entry.generation += 1
        entry.state = EntryState.EMPTY
        if superseded is not None:
            superseded.set_result(None)
        host_cache_entries.dec()
        self._log.debug("host_cache_evicted", host_id=host_id)

    def get(self, host_id: str) -> CacheEntrySnapshot | None:
        """Return a snapshot of *host_id*'s entry, or None. Never fetches."""
        entry = self._entries.get(host_id)
        if entry is None:
            return None
        return entry.snapshot()

    def clear_all(self) -> None:
        """Evict every entry."""
        for host_id in list(self._entries):
            self.evict(host_id)

    def host_ids(self) -> list[str]:
        """Return the host ids that currently have an entry."""
        return list(self._entries)

    def __contains__(self, host_id: object) -> bool:
        return host_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def close(self) -> None:
        """Evict everything and wait for background tasks to wind down."""
        self.clear_all()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _create_entry(self, host_id: str) -> _CacheEntry:
        entry = _CacheEntry(host_id=host_id)
        self._entries[host_id] = entry
        host_cache_entries.inc()
        return entry

    def _start_load(self, loop: asyncio.AbstractEventLoop, entry: _CacheEntry, trigger: str) -> asyncio.Future[None]:
        """EMPTY -> LOADING: bump the generation and launch the fan-out task."""
        entry.generation += 1
        entry.state = EntryState.LOADING
        entry.done = loop.create_future()

        task = loop.create_task(
            self._fan_out(entry, entry.generation),
            name=f"host_cache_load_{entry.host_id}_{entry.generation}",
        )
        entry.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        host_cache_loads_total.labels(trigger=trigger).inc()
        self._log.debug(
            "host_load_started",
            host_id=entry.host_id,
            generation=entry.generation,
            trigger=trigger,
        )
        return asyncio.shield(entry.done)

    def _supersede(self, entry: _CacheEntry) -> asyncio.Future[None] | None:
        """Detach the in-flight load from *entry*.

        Cancels its task and returns its still-pending completion future so
        the caller can decide how its waiters complete.
        """
        task, done = entry.task, entry.done
        entry.task = None
        entry.done = None
        if task is not None and not task.done():
            task.cancel()
        if done is not None and not done.done():
            return done
        return None

    def _is_current(self, entry: _CacheEntry, generation: int) -> bool:
        return self._entries.get(entry.host_id) is entry and entry.generation == generation

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def _fan_out(self, entry: _CacheEntry, generation: int) -> None:
        """Run all five fetchers for one generation and merge the results."""
        host_id = entry.host_id
        started = time.monotonic()
        kinds = list(self._fetchers)

        results = await asyncio.gather(
            *(self._fetch(kind, host_id) for kind in kinds),
            return_exceptions=True,
        )

        if not self._is_current(entry, generation):
            host_cache_stale_discards_total.inc()
            self._log.debug("host_load_superseded", host_id=host_id, generation=generation)
            return

        # No await between the generation check and the merge below
        failures: dict[ResourceKind, str] = {}
        try:
            merged = self._collect(host_id, kinds, results, failures)
            entry.records.update(merged)
            entry.state = EntryState.LOADED
            entry.loaded_at = datetime.now(tz=UTC)
            entry.failed_kinds = frozenset(failures)
        finally:
            entry.task = None
            done, entry.done = entry.done, None
            if done is not None and not done.done():
                done.set_result(None)

        host_cache_load_duration_seconds.observe(time.monotonic() - started)
        self._log.info(
            "host_resources_loaded",
            host_id=host_id,
            generation=generation,
            counts={kind.value: len(entry.records[kind]) for kind in kinds},
            failed_kinds=[kind.value for kind in kinds if kind in failures],
        )

        if failures:
            await self._emit(
                LoadDiagnostic(
                    host_id=host_id,
                    generation=generation,
                    failures=MappingProxyType(failures),
                    occurred_at=entry.loaded_at,
                )
            )

    def _collect(
        self,
        host_id: str,
        kinds: list[ResourceKind],
        results: Sequence[object],
        failures: dict[ResourceKind, str],
    ) -> dict[ResourceKind, tuple[object, ...]]:
        """Convert settled fetch results to record tuples.

        A kind whose fetch raised, or whose result is not iterable, is
        recorded in *failures* and left out of the returned mapping.
        """
        merged: dict[ResourceKind, tuple[object, ...]] = {}
        for kind, result in zip(kinds, results, strict=True):
            if isinstance(result, BaseException):
                failures[kind] = str(result) or type(result).__name__
                self._log_fetch_failure(host_id, kind, result)
                continue
            try:
                merged[kind] = tuple(result)  # type: ignore[call-overload]
            except Exception as exc:
                failures[kind] = f"Unexpected {type(result).__name__} listing"
                self._log_fetch_failure(host_id, kind, exc)
        return merged

    async def _fetch(self, kind: ResourceKind, host_id: str) -> Sequence[object]:
        return await self._fetchers[kind](host_id)

    def _log_fetch_failure(self, host_id: str, kind: ResourceKind, error: BaseException) -> None:
        host_cache_fetch_failures_total.labels(kind=kind.value).inc()
        if isinstance(error, TransportError):
            self._log.warning(
                "host_fetch_failed",
                host_id=host_id,
                kind=kind.value,
                error=str(error),
                status_code=error.status_code,
            )
        else:
            self._log.error(
                "host_fetch_crashed",
                host_id=host_id,
                kind=kind.value,
                error=str(error),
                error_type=type(error).__name__,
                exc_info=error,
            )

    async def _emit(self, diagnostic: LoadDiagnostic) -> None:
        """Deliver *diagnostic* to the sink; sink errors are logged, never raised."""
        if self._on_diagnostic is None:
            return
        try:
            await self._on_diagnostic(diagnostic)
        except Exception as exc:
            self._log.error(
                "host_diagnostic_delivery_failed",
                host_id=diagnostic.host_id,
                error=str(exc),
                exc_info=True,
            )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _completed_future(loop: asyncio.AbstractEventLoop) -> asyncio.Future[None]:
    future: asyncio.Future[None] = loop.create_future()
    future.set_result(None)
    return future


def _chain(source: asyncio.Future[None], target: asyncio.Future[None]) -> None:
    """Complete *target* once *source* completes."""

    def _propagate(_: asyncio.Future[None]) -> None:
        if not target.done():
            target.set_result(None)

    source.add_done_callback(_propagate)
