"""Two-tier retrieval cache: local LRU/TTL tier plus optional shared Redis tier."""

from __future__ import annotations

from docchat.cache.invalidation import CacheInvalidator
from docchat.cache.key_strategy import embedding_key, fingerprint, preprocess_query, query_key
from docchat.cache.memory import MemoryCache
from docchat.cache.models import CacheEntry, CacheKindStats, CacheLookup, CacheStats, HitMissStats
from docchat.cache.redis import SharedCache
from docchat.cache.service import EMBEDDING_NAMESPACE, QUERY_NAMESPACE, RetrievalCache
from docchat.cache.tiered import LocalResultCache, TwoTierResultCache, create_result_cache

__all__ = [
    "CacheEntry",
    "CacheInvalidator",
    "CacheKindStats",
    "CacheLookup",
    "CacheStats",
    "EMBEDDING_NAMESPACE",
    "HitMissStats",
    "LocalResultCache",
    "MemoryCache",
    "QUERY_NAMESPACE",
    "RetrievalCache",
    "SharedCache",
    "TwoTierResultCache",
    "create_result_cache",
    "embedding_key",
    "fingerprint",
    "preprocess_query",
    "query_key",
]
