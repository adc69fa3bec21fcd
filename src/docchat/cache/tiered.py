"""Per-kind result caches: local-only and local + shared strategies.

``create_result_cache`` picks the strategy once at construction. Both expose
the same ``get`` / ``set`` / ``get_or_compute`` surface; the two-tier variant
only overrides the shared-tier hooks.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

from docchat.cache.memory import MemoryCache
from docchat.cache.models import CacheEntry, CacheKindStats, CacheLookup, HitMissStats, now_ms

log = logging.getLogger(__name__)

T = TypeVar("T")
Validator = Callable[[Any], bool]


class CacheKindConfig(Protocol):
    enabled: bool
    ttl_ms: int
    max_entries: int


class ReadPolicy(Protocol):
    local_first: bool


class SharedTier(Protocol):
    """Operations the tiered cache needs from a shared key-value store."""

    @property
    def connected(self) -> bool: ...

    async def get(self, key: str) -> Any | None: ...

    async def set_with_expiry(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    async def delete_matching(self, pattern: str) -> int: ...

    async def ping(self) -> Optional[float]: ...

    async def aclose(self) -> None: ...


def _short(key: str) -> str:
    return key[:50]


class LocalResultCache:
    """One cache kind served from process memory only."""

    def __init__(
        self,
        kind: str,
        namespace: str,
        config: CacheKindConfig,
        *,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.kind = kind
        self.namespace = namespace
        self.config = config
        self.stats = HitMissStats()
        self._clock = clock or now_ms
        self._local = MemoryCache(
            max_entries=config.max_entries,
            ttl_ms=config.ttl_ms,
            allow_stale=True,
            clock=self._clock,
        )

    @property
    def size(self) -> int:
        return len(self._local)

    async def get(self, key: str, validate: Optional[Validator] = None) -> CacheLookup:
        """Look *key* up. Disabled kinds miss without touching state or stats.

        A payload rejected by *validate* counts as a miss; a rejected local
        entry is dropped.
        """
        if not self.config.enabled:
            return CacheLookup.miss()

        entry = self._local.get(key)
        if entry is not None and not entry.is_stale(self.config.ttl_ms, self._clock()):
            if validate is None or validate(entry.data):
                entry.hits += 1
                self.stats.record_hit()
                log.debug("%s hit (local): %s", self.kind, _short(key))
                return CacheLookup(hit=True, data=entry.data)
            log.warning("Discarding malformed local %s entry %s", self.kind, _short(key))
            self._local.delete(key)

        shared = await self._read_shared(key)
        if shared.hit and validate is not None and not validate(shared.data):
            log.warning("Discarding malformed shared %s entry %s", self.kind, _short(key))
        elif shared.hit:
            self._local.put(key, CacheEntry(data=shared.data, timestamp=self._clock(), hits=1))
            self.stats.record_hit()
            log.debug("%s hit (shared): %s", self.kind, _short(key))
            return shared

        self.stats.record_miss()
        return CacheLookup.miss()

    async def set(self, key: str, value: Any) -> None:
        """Write-through store. Disabled kinds ignore writes."""
        if not self.config.enabled:
            return
        self._local.put(key, CacheEntry(data=value, timestamp=self._clock()))
        await self._write_shared(key, value)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        validate: Optional[Validator] = None,
    ) -> tuple[T, bool]:
        """Return ``(value, was_cached)``, computing and storing on a miss.

        Concurrent misses on one key each compute; the last write wins.
        """
        lookup = await self.get(key, validate)
        if lookup.hit:
            return lookup.data, True
        value = await compute()
        await self.set(key, value)
        return value, False

    def clear_local(self) -> int:
        """Drop every local entry. Returns the exact number removed."""
        return self._local.clear()

    def snapshot(self) -> CacheKindStats:
        return CacheKindStats(
            size=self.size,
            hits=self.stats.hits,
            misses=self.stats.misses,
            hit_rate=self.stats.hit_rate,
        )

    def shared_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def _read_shared(self, key: str) -> CacheLookup:
        return CacheLookup.miss()

    async def _write_shared(self, key: str, value: Any) -> None:
        return None


class TwoTierResultCache(LocalResultCache):
    """Local tier backed by a shared tier: read fallback with local backfill, write-through.

    Shared-tier errors are logged and treated as misses; they never reach the caller.
    """

    def __init__(
        self,
        kind: str,
        namespace: str,
        config: CacheKindConfig,
        shared: SharedTier,
        policy: ReadPolicy,
        *,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        super().__init__(kind, namespace, config, clock=clock)
        self.shared = shared
        self.policy = policy

    @property
    def ttl_seconds(self) -> int:
        if self.config.ttl_ms <= 0:
            return 0
        return max(1, self.config.ttl_ms // 1000)

    async def _read_shared(self, key: str) -> CacheLookup:
        if not self.policy.local_first:
            return CacheLookup.miss()
        try:
            data = await self.shared.get(self.shared_key(key))
        except Exception as exc:
            log.warning("Shared %s read failed: %s", self.kind, exc)
            return CacheLookup.miss()
        if data is None:
            return CacheLookup.miss()
        return CacheLookup(hit=True, data=data)

    async def _write_shared(self, key: str, value: Any) -> None:
        try:
            await self.shared.set_with_expiry(self.shared_key(key), value, self.ttl_seconds)
        except Exception as exc:
            log.warning("Shared %s write failed: %s", self.kind, exc)


def create_result_cache(
    kind: str,
    namespace: str,
    config: CacheKindConfig,
    *,
    shared: Optional[SharedTier] = None,
    policy: Optional[ReadPolicy] = None,
    clock: Optional[Callable[[], float]] = None,
) -> LocalResultCache:
    """Factory: two-tier when a shared tier and read policy are supplied, else local-only."""
    if shared is not None and policy is not None:
        return TwoTierResultCache(kind, namespace, config, shared, policy, clock=clock)
    return LocalResultCache(kind, namespace, config, clock=clock)
