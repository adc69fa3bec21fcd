"""Retrieval cache facade: embedding and query-result kinds over one shared tier.

Built once at startup and handed to request handlers; there is no module
level instance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from docchat.cache.models import CacheLookup, CacheStats, SharedTierStats
from docchat.cache.redis import SharedCache
from docchat.cache.tiered import LocalResultCache, SharedTier, Validator, create_result_cache

if TYPE_CHECKING:
    from docchat.core.config import AppSettings

log = logging.getLogger(__name__)

EMBEDDING_NAMESPACE = "emb"
QUERY_NAMESPACE = "query"


class RetrievalCache:
    """Two cache kinds (embeddings, query results) and the optional shared tier."""

    def __init__(
        self,
        embeddings: LocalResultCache,
        queries: LocalResultCache,
        shared: Optional[SharedTier] = None,
    ) -> None:
        self.embeddings = embeddings
        self.queries = queries
        self.shared = shared

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        shared: Optional[SharedTier] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> RetrievalCache:
        """Build both kinds. A shared tier is created only when one is configured."""
        if shared is None and settings.shared_cache.is_configured:
            shared = SharedCache(
                settings.shared_cache.url,
                timeout_ms=settings.performance.redis_timeout_ms,
                scan_count=settings.shared_cache.key_scan_count,
            )
        policy = settings.performance if shared is not None else None

        embeddings = create_result_cache(
            "embedding",
            EMBEDDING_NAMESPACE,
            settings.embedding_cache,
            shared=shared,
            policy=policy,
            clock=clock,
        )
        queries = create_result_cache(
            "query",
            QUERY_NAMESPACE,
            settings.query_cache,
            shared=shared,
            policy=policy,
            clock=clock,
        )
        log.info(
            "Retrieval cache ready (shared tier %s)",
            "configured" if shared is not None else "disabled",
        )
        return cls(embeddings, queries, shared)

    async def get_cached_embedding(self, key: str, validate: Optional[Validator] = None) -> CacheLookup:
        return await self.embeddings.get(key, validate)

    async def set_cached_embedding(self, key: str, embedding: list[float]) -> None:
        await self.embeddings.set(key, embedding)

    async def get_cached_results(self, key: str, validate: Optional[Validator] = None) -> CacheLookup:
        return await self.queries.get(key, validate)

    async def set_cached_results(self, key: str, results: Any) -> None:
        await self.queries.set(key, results)

    async def delete_shared_matching(self, pattern: str) -> int:
        """Best-effort pattern delete on the shared tier. Failures count as zero."""
        if self.shared is None:
            return 0
        try:
            return await self.shared.delete_matching(pattern)
        except Exception as exc:
            log.warning("Shared cache delete for %r failed: %s", pattern, exc)
            return 0

    def get_cache_stats(self, shared_ping_ms: Optional[float] = None) -> CacheStats:
        return CacheStats(
            embedding=self.embeddings.snapshot(),
            query=self.queries.snapshot(),
            shared=SharedTierStats(
                configured=self.shared is not None,
                connected=bool(self.shared is not None and self.shared.connected),
            ),
            shared_ping_ms=shared_ping_ms,
        )

    async def ping_shared(self) -> Optional[float]:
        if self.shared is None:
            return None
        return await self.shared.ping()

    async def aclose(self) -> None:
        if self.shared is not None:
            await self.shared.aclose()
