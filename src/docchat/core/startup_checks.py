"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docchat.core.config import AppSettings

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_budget(settings)
    _check_cache_kinds(settings)
    _check_read_policy(settings)
    _check_auth(settings)
    _check_rate_limit(settings)


def _check_budget(settings: AppSettings) -> None:
    ctx = settings.context
    if ctx.response_reserve < 0 or ctx.response_reserve >= ctx.max_context_tokens:
        raise ValueError(
            f"DOCCHAT_CONTEXT_RESPONSE_RESERVE ({ctx.response_reserve}) must be non-negative "
            f"and below DOCCHAT_CONTEXT_MAX_CONTEXT_TOKENS ({ctx.max_context_tokens})."
        )


def _check_cache_kinds(settings: AppSettings) -> None:
    for name, cfg in (("EMBEDDING_CACHE", settings.embedding_cache), ("QUERY_CACHE", settings.query_cache)):
        if not cfg.enabled:
            continue
        if cfg.max_entries <= 0:
            raise ValueError(f"DOCCHAT_{name}_MAX_ENTRIES must be positive when the cache is enabled.")
        if cfg.ttl_ms <= 0:
            raise ValueError(f"DOCCHAT_{name}_TTL_MS must be positive when the cache is enabled.")


def _check_read_policy(settings: AppSettings) -> None:
    """Warn when a configured shared tier would never serve reads."""
    if settings.shared_cache.is_configured and not settings.performance.local_first:
        log.warning(
            "Shared cache configured but DOCCHAT_PERFORMANCE_LOCAL_FIRST=false; "
            "the shared tier will receive writes but never serve reads."
        )


def _check_auth(settings: AppSettings) -> None:
    """Reject auth enabled with no credentials; the API would be fully locked."""
    if settings.auth.enabled and not settings.auth.api_keys and not settings.auth.jwks_url:
        raise ValueError(
            "DOCCHAT_AUTH_ENABLED=true but no API keys or JWKS URL configured. "
            "All authenticated requests would be rejected. "
            "Set DOCCHAT_AUTH_API_KEYS or DOCCHAT_AUTH_JWKS_URL, or disable auth."
        )


def _check_rate_limit(settings: AppSettings) -> None:
    limits = settings.rate_limit
    if limits.enabled and (limits.max_requests <= 0 or limits.window_ms <= 0):
        raise ValueError(
            "DOCCHAT_RATE_LIMIT_MAX_REQUESTS and DOCCHAT_RATE_LIMIT_WINDOW_MS must be positive "
            "when rate limiting is enabled."
        )
