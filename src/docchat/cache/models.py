"""Data models for the retrieval cache."""

from __future__ import annotations

import dataclasses
import time
from typing import Any, Optional


def now_ms() -> float:
    """Wall-clock time in epoch milliseconds."""
    return time.time() * 1000


@dataclasses.dataclass
class CacheEntry:
    """A cached value with its write time (epoch ms) and local hit count."""

    data: Any
    timestamp: float = dataclasses.field(default_factory=now_ms)
    hits: int = 0

    def is_stale(self, ttl_ms: int, at_ms: float) -> bool:
        """True once the entry is older than *ttl_ms*. A non-positive TTL never expires."""
        if ttl_ms <= 0:
            return False
        return at_ms - self.timestamp > ttl_ms


@dataclasses.dataclass(frozen=True)
class CacheLookup:
    """Outcome of a cache read."""

    hit: bool
    data: Any = None

    @classmethod
    def miss(cls) -> CacheLookup:
        return cls(hit=False)


@dataclasses.dataclass
class HitMissStats:
    """Process-lifetime read counters for one cache kind. Never reset by clears."""

    hits: int = 0
    misses: int = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


@dataclasses.dataclass(frozen=True)
class CacheKindStats:
    size: int
    hits: int
    misses: int
    hit_rate: float


@dataclasses.dataclass(frozen=True)
class SharedTierStats:
    configured: bool
    connected: bool


@dataclasses.dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot across both cache kinds and the shared tier."""

    embedding: CacheKindStats
    query: CacheKindStats
    shared: SharedTierStats
    shared_ping_ms: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
