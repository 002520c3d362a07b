"""
PollingCache: last-known-good value per capability with a staleness window
and a periodic background refresh.

This is a pure asyncio concurrency primitive with no HA or network dependencies.
"""
from __future__ import annotations

import asyncio
import dataclasses
import itertools
import logging
import time
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

from .errors import SpaceDataError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable cached value; replaced wholesale, never mutated."""

    value: T
    fetched_at: float      # clock() at completion
    generation: int        # issue sequence number of the fetch that produced it


class PollingCache(Generic[T]):
    """
    Caches the last successful result of `fetcher(key)` per key.

    Single-value capabilities use the key None; pass predictions use the
    rounded observer coordinates.

    - get() serves a fresh entry without a network call, otherwise fetches once;
      concurrent stale readers of the same key share that fetch.
    - refresh() always fetches. A result only replaces the entry if no fetch
      issued after it has already stored a value.
    - Failures are swallowed when a value is cached (the stale value keeps being
      served) and propagated untouched when nothing is cached yet.
    - start() runs a background task that refreshes every watched key every
      refresh_interval seconds, independent of staleness, joining a refresh
      already in flight for the key; stop() ends it.
    """

    def __init__(
        self,
        name: str,
        fetcher: Callable[[Hashable], Awaitable[T]],
        max_age: float,
        refresh_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.max_age = max_age
        self.refresh_interval = refresh_interval if refresh_interval is not None else max_age
        self._fetcher = fetcher
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[T]] = {}
        self._inflight: dict[Hashable, asyncio.Task] = {}
        self._watched: set[Hashable] = set()
        self._sequence = itertools.count(1)
        self._timer: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def peek(self, key: Hashable = None) -> CacheEntry[T] | None:
        """Current entry for key without fetching (None when cold)."""
        return self._entries.get(key)

    def is_fresh(self, key: Hashable = None) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.fetched_at < self.max_age

    async def get(self, key: Hashable = None) -> T:
        """
        Return the cached value for key if it is younger than max_age,
        otherwise fetch (or join the fetch already in flight for key).
        """
        self._watched.add(key)
        if self.is_fresh(key):
            _LOGGER.debug("%s cache hit for %s", self.name, key)
            return self._entries[key].value

        # Shield: a cancelled reader must not cancel the fetch other readers share
        return await asyncio.shield(self._shared_refresh(key))

    async def refresh(self, key: Hashable = None) -> T:
        """
        Fetch key now and store the result.

        Returns the value now cached for key, which is the fetched value unless a
        newer-issued fetch completed first.

        Raises:
            SpaceDataError: the fetch failed and nothing is cached for key.
                Any other fetcher exception propagates the same way.
        """
        generation = next(self._sequence)
        try:
            value = await self._fetcher(key)
        except Exception as exc:  # noqa: BLE001
            entry = self._entries.get(key)
            if entry is None:
                raise
            if isinstance(exc, SpaceDataError):
                _LOGGER.warning(
                    "%s refresh failed for %s, serving value from %.0f s ago: %s",
                    self.name, key, self._clock() - entry.fetched_at, exc,
                )
            else:
                _LOGGER.error(
                    "%s refresh raised %s for %s, serving value from %.0f s ago: %s",
                    self.name, type(exc).__name__, key, self._clock() - entry.fetched_at, exc,
                )
            return entry.value

        current = self._entries.get(key)
        if current is not None and current.generation > generation:
            _LOGGER.debug(
                "%s discarding result of fetch #%s for %s, newer fetch #%s already stored",
                self.name, generation, key, current.generation,
            )
            return current.value

        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock(), generation=generation)
        return value

    def watch(self, key: Hashable = None) -> None:
        """Include key in background refreshes even before the first read."""
        self._watched.add(key)

    def start(self) -> None:
        """Start the background refresh timer (no-op if already running)."""
        if self._timer is None or self._timer.done():
            self._timer = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Cancel the background timer and any fetch still in flight."""
        tasks = [task for task in (self._timer, *self._inflight.values()) if task is not None]
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                _LOGGER.debug("%s cache task error during shutdown: %s", self.name, result)
        self._timer = None
        self._inflight.clear()

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        """Refresh every watched key each refresh_interval seconds, forever."""
        while True:
            await asyncio.sleep(self.refresh_interval)
            for key in list(self._watched):
                try:
                    await asyncio.shield(self._shared_refresh(key))
                except SpaceDataError as exc:
                    _LOGGER.warning("%s background refresh failed for %s: %s", self.name, key, exc)
                except Exception as exc:  # noqa: BLE001
                    _LOGGER.error(
                        "%s background refresh raised %s for %s: %s",
                        self.name, type(exc).__name__, key, exc,
                    )

    def _shared_refresh(self, key: Hashable) -> asyncio.Task:
        """Start a refresh of key, or return the one already in flight."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self.refresh(key))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget_inflight(k, t))
        return task

    def _forget_inflight(self, key: Hashable, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
