"""In-memory LRU cache with TTL support.

Every method runs to completion without awaiting, so on a single event loop
each operation is atomic per key and no lock is taken.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Optional

from docchat.cache.models import CacheEntry, now_ms


class MemoryCache:
    """OrderedDict-based LRU cache with TTL expiry.

    With ``allow_stale`` an expired entry is evicted on read but still
    returned once, leaving the freshness decision to the caller.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        ttl_ms: int = 0,
        *,
        allow_stale: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._max_entries = max_entries
        self._ttl_ms = ttl_ms
        self._allow_stale = allow_stale
        self._clock = clock or now_ms
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Retrieve an entry and mark it most recently used."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_stale(self._ttl_ms, self._clock()):
            del self._store[key]
            return entry if self._allow_stale else None
        self._store.move_to_end(key)
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one. Evicts LRU entries over capacity."""
        if key in self._store:
            del self._store[key]
        self._store[key] = entry

        while len(self._store) > self._max_entries:
            self._store.popitem(last=False)

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> int:
        """Remove all entries. Returns how many were held."""
        removed = len(self._store)
        self._store.clear()
        return removed

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
