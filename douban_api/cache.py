"""
In-memory coalescing cache for scraped resources.

``ResourceCache.get_or_populate`` guarantees at most one in-flight
population per key: the first caller starts the population as its own
task, later callers for the same key await that task instead of starting
another.  Only successful results are stored, and a caller-supplied
``should_store`` predicate can keep partial ones out as well.  Entries
expire a fixed TTL after insertion (reads do not extend it) and the least
recently used entry is evicted once the table exceeds its capacity.

All bookkeeping happens on the event loop between ``await`` points, so
the entry table needs no lock and unrelated keys never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar('V')


@dataclass(frozen=True)
class _CacheEntry(Generic[V]):
    value: V
    inserted_at: float


def _consume_exception(future: asyncio.Future) -> None:
    # Marks the exception as retrieved even when every waiter was cancelled.
    if not future.cancelled():
        future.exception()


class ResourceCache(Generic[V]):
    """Single-flight TTL cache with approximate LRU eviction.

    Args:
        capacity: Maximum number of stored entries.
        ttl: Seconds an entry stays valid after insertion.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(self, capacity: int = 100, ttl: float = 600.0,
                 clock: Callable[[], float] = time.monotonic):
        if capacity <= 0:
            raise ValueError('capacity must be positive')
        if ttl <= 0:
            raise ValueError('ttl must be positive')
        self._capacity = capacity
        self._ttl = ttl
        self._clock = clock
        self._entries: 'OrderedDict[Hashable, _CacheEntry[V]]' = OrderedDict()
        self._inflight: Dict[Hashable, asyncio.Task] = {}
        self.hits = 0
        self.misses = 0

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self._lookup(key, touch=False) is not None

    def inflight(self) -> int:
        """Number of populations currently running."""
        return len(self._inflight)

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #
    def invalidate(self, key: Hashable) -> bool:
        """Drop *key*; returns whether an entry was removed.

        A population already in flight for *key* is not cancelled and will
        store its result when it finishes.
        """
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def _is_expired(self, entry: _CacheEntry[V], now: float) -> bool:
        return now - entry.inserted_at > self._ttl

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]

    def _lookup(self, key: Hashable, touch: bool = True) -> Optional[_CacheEntry[V]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            logger.debug('Cache entry expired: %s', key)
            return None
        if touch:
            self._entries.move_to_end(key)
        return entry

    def _store(self, key: Hashable, value: V) -> None:
        # A fresh entry replaces any old one; entries are never edited.
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(value, self._clock())
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug('Cache full (%d), evicted %s', self._capacity, evicted)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    async def get_or_populate(self, key: Hashable, populate: Callable[[], Awaitable[V]],
                              should_store: Optional[Callable[[V], bool]] = None) -> V:
        """Return the cached value for *key*, populating it on a miss.

        Concurrent misses for the same key share one call to *populate* and
        all receive its result or its exception.  Cancelling one caller does
        not cancel the shared population.

        *should_store* can reject a successful value (e.g. a partial result);
        it is still handed to the waiting callers but is not cached.
        """
        entry = self._lookup(key)
        if entry is not None:
            self.hits += 1
            logger.debug('Cache hit: %s', key)
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            self.misses += 1
            logger.debug('Cache miss: %s', key)
            task = asyncio.ensure_future(self._populate(key, populate, should_store))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        else:
            logger.debug('Joining in-flight population: %s', key)

        return await asyncio.shield(task)

    async def _populate(self, key: Hashable, populate: Callable[[], Awaitable[V]],
                        should_store: Optional[Callable[[V], bool]]) -> V:
        try:
            value = await populate()
            if should_store is None or should_store(value):
                self._store(key, value)
            else:
                logger.debug('Not caching partial result: %s', key)
            return value
        finally:
            self._inflight.pop(key, None)
