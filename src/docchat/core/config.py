"""Nested pydantic-settings configuration for the application.

Each group reads its own ``DOCCHAT_<GROUP>_*`` env vars::

    export DOCCHAT_EMBEDDING_CACHE_TTL_MS=600000
    export DOCCHAT_PERFORMANCE_LOCAL_FIRST=false
    export REDIS_URL=redis://cache:6379/0
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class TokenizerConfig(BaseSettings):
    """Tokenizer configuration.

    Env vars use ``DOCCHAT_TOKENIZER_`` prefix. ``message_overhead`` overrides
    the per-message framing cost; leave unset to use the role-marker formula
    calibrated for cl100k_base.
    """

    model_config = {"env_prefix": "DOCCHAT_TOKENIZER_"}

    method: Literal["approximate", "tiktoken"] = "tiktoken"
    model: str = "gpt-4"
    fallback_encoding: str = "cl100k_base"
    char_to_token_ratio: int = Field(default=4, ge=1)
    message_overhead: Optional[int] = Field(default=None, ge=0)


class ContextConfig(BaseSettings):
    """Context window budget.

    Env vars use ``DOCCHAT_CONTEXT_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_CONTEXT_"}

    max_context_tokens: int = 128_000
    response_reserve: int = 2_000
    max_retrieval_tokens: int = 60_000


class EmbeddingCacheConfig(BaseSettings):
    """Embedding cache kind.

    Env vars use ``DOCCHAT_EMBEDDING_CACHE_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_EMBEDDING_CACHE_"}

    enabled: bool = True
    ttl_ms: int = 5 * 60 * 1000
    max_entries: int = 1000


class QueryCacheConfig(BaseSettings):
    """Query result cache kind.

    Env vars use ``DOCCHAT_QUERY_CACHE_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_QUERY_CACHE_"}

    enabled: bool = True
    ttl_ms: int = 5 * 60 * 1000
    max_entries: int = 500


class InvalidationConfig(BaseSettings):
    """Which external events trigger cache invalidation.

    Env vars use ``DOCCHAT_INVALIDATION_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_INVALIDATION_"}

    on_user_delete: bool = True
    on_document_update: bool = True


class PerformanceConfig(BaseSettings):
    """Read-path policy.

    Env vars use ``DOCCHAT_PERFORMANCE_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_PERFORMANCE_"}

    local_first: bool = True
    redis_timeout_ms: int = 5000


class SharedCacheConfig(BaseSettings):
    """Shared (Redis) cache tier. Disabled unless a URL is present.

    Reads ``DOCCHAT_SHARED_CACHE_URL`` or, failing that, ``REDIS_URL``.
    """

    model_config = {"env_prefix": "DOCCHAT_SHARED_CACHE_", "populate_by_name": True}

    url: str = Field(
        default="",
        validation_alias=AliasChoices("DOCCHAT_SHARED_CACHE_URL", "REDIS_URL"),
    )
    key_scan_count: int = 500

    @property
    def is_configured(self) -> bool:
        return bool(self.url)


class AuthConfig(BaseSettings):
    """API authentication.

    Env vars use ``DOCCHAT_AUTH_`` prefix::

        export DOCCHAT_AUTH_ENABLED=true
        export DOCCHAT_AUTH_API_KEYS='["key-1","key-2"]'
    """

    model_config = {"env_prefix": "DOCCHAT_AUTH_"}

    enabled: bool = False
    api_keys: list[str] = Field(default_factory=list)
    api_key_header: str = "X-API-Key"
    jwks_url: str = ""
    issuer: str = ""
    audience: str = "docchat"
    algorithm: str = "RS256"
    user_claim: str = "sub"


class RateLimitConfig(BaseSettings):
    """Fixed-window request limits for the authenticated API routes.

    Env vars use ``DOCCHAT_RATE_LIMIT_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_RATE_LIMIT_"}

    enabled: bool = True
    max_requests: int = 60
    window_ms: int = 60_000


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Env vars use ``DOCCHAT_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_OBSERVABILITY_"}

    service_name: str = "docchat"
    log_level: str = "INFO"


class APIConfig(BaseSettings):
    """HTTP server settings.

    Env vars use ``DOCCHAT_API_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_API_"}

    title: str = "docchat"
    description: str = "Retrieval context budgeting and two-tier caching for document chat"
    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``DOCCHAT_<GROUP>_*`` env vars.
    """

    model_config = {"env_prefix": "DOCCHAT_"}

    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    embedding_cache: EmbeddingCacheConfig = Field(default_factory=EmbeddingCacheConfig)
    query_cache: QueryCacheConfig = Field(default_factory=QueryCacheConfig)
    invalidation: InvalidationConfig = Field(default_factory=InvalidationConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    shared_cache: SharedCacheConfig = Field(default_factory=SharedCacheConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    api: APIConfig = Field(default_factory=APIConfig)
