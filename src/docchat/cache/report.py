"""Cache performance report rendering (JSON and plain text)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from docchat.cache.models import CacheKindStats, CacheStats
    from docchat.core.config import AppSettings


def _percent(rate: float, digits: int) -> str:
    return f"{rate * 100:.{digits}f}%"


def _kind_report(stats: CacheKindStats) -> dict[str, Any]:
    return {
        "size": stats.size,
        "hits": stats.hits,
        "misses": stats.misses,
        "hitRate": _percent(stats.hit_rate, 2),
        "hitRateDecimal": stats.hit_rate,
    }


def build_stats_report(
    stats: CacheStats,
    settings: AppSettings,
    generated_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Machine-readable snapshot served by the stats endpoint."""
    generated_at = generated_at or datetime.now(timezone.utc)
    return {
        "timestamp": generated_at.isoformat(),
        "configuration": {
            "embeddingCache": settings.embedding_cache.enabled,
            "embeddingTTL": settings.embedding_cache.ttl_ms,
            "queryCache": settings.query_cache.enabled,
            "queryTTL": settings.query_cache.ttl_ms,
        },
        "performance": {
            "embedding": _kind_report(stats.embedding),
            "query": _kind_report(stats.query),
        },
        "infrastructure": {
            "sharedCache": stats.shared.connected,
            "sharedCacheConfigured": stats.shared.configured,
            "sharedCachePing": stats.shared_ping_ms,
        },
    }


def render_text_report(report: dict[str, Any]) -> str:
    """Human-readable rendering of ``build_stats_report`` output."""
    config = report["configuration"]
    emb = report["performance"]["embedding"]
    query = report["performance"]["query"]
    infra = report["infrastructure"]
    ping = infra["sharedCachePing"]

    lines = [
        "Cache Performance Report",
        "========================",
        f"Generated: {report['timestamp']}",
        "",
        "Configuration",
        "-------------",
        f"Embedding Cache: {'Enabled' if config['embeddingCache'] else 'Disabled'}",
        f"  TTL: {config['embeddingTTL']}ms",
        f"Query Cache: {'Enabled' if config['queryCache'] else 'Disabled'}",
        f"  TTL: {config['queryTTL']}ms",
        "",
        "Performance",
        "-----------",
    ]
    for title, kind in (("Embedding Cache", emb), ("Query Cache", query)):
        lines += [
            f"{title}:",
            f"  Size: {kind['size']}",
            f"  Hits: {kind['hits']}",
            f"  Misses: {kind['misses']}",
            f"  Hit Rate: {kind['hitRate']}",
            "",
        ]
    lines += [
        "Infrastructure",
        "--------------",
        f"Shared Cache: {'Connected' if infra['sharedCache'] else 'Unavailable'}",
        f"Ping: {f'{ping}ms' if ping is not None else 'n/a'}",
    ]
    return "\n".join(lines)


def build_health_summary(stats: CacheStats, checked_at: Optional[datetime] = None) -> dict[str, Any]:
    """Short liveness view of the cache service."""
    checked_at = checked_at or datetime.now(timezone.utc)
    return {
        "status": "healthy",
        "service": "cache",
        "timestamp": checked_at.isoformat(),
        "sharedCache": "connected" if stats.shared.connected else "unavailable",
        "embeddingHitRate": _percent(stats.embedding.hit_rate, 1),
        "queryHitRate": _percent(stats.query.hit_rate, 1),
    }
