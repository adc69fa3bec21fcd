"""Tests for env-driven settings."""

from __future__ import annotations

from docchat.core.config import (
    AppSettings,
    AuthConfig,
    ContextConfig,
    EmbeddingCacheConfig,
    PerformanceConfig,
    QueryCacheConfig,
    SharedCacheConfig,
    TokenizerConfig,
)


class TestDefaults:
    def test_context_defaults(self) -> None:
        ctx = ContextConfig()
        assert ctx.max_context_tokens == 128_000
        assert ctx.response_reserve == 2_000
        assert ctx.max_retrieval_tokens == 60_000

    def test_cache_defaults(self) -> None:
        assert EmbeddingCacheConfig().ttl_ms == 300_000
        assert EmbeddingCacheConfig().max_entries == 1000
        assert QueryCacheConfig().max_entries == 500
        assert PerformanceConfig().local_first is True

    def test_settings_aggregate_groups(self) -> None:
        settings = AppSettings()
        assert isinstance(settings.tokenizer, TokenizerConfig)
        assert settings.auth.enabled is False


class TestEnvOverrides:
    def test_cache_ttl_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("DOCCHAT_EMBEDDING_CACHE_TTL_MS", "600000")
        monkeypatch.setenv("DOCCHAT_QUERY_CACHE_ENABLED", "false")
        assert EmbeddingCacheConfig().ttl_ms == 600_000
        assert QueryCacheConfig().enabled is False

    def test_local_first_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("DOCCHAT_PERFORMANCE_LOCAL_FIRST", "false")
        assert PerformanceConfig().local_first is False

    def test_api_keys_from_json_env(self, monkeypatch) -> None:
        monkeypatch.setenv("DOCCHAT_AUTH_API_KEYS", '["k1","k2"]')
        assert AuthConfig().api_keys == ["k1", "k2"]

    def test_tokenizer_overhead_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("DOCCHAT_TOKENIZER_MESSAGE_OVERHEAD", "3")
        assert TokenizerConfig().message_overhead == 3


class TestSharedCacheUrl:
    def test_unconfigured_by_default(self, monkeypatch) -> None:
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.delenv("DOCCHAT_SHARED_CACHE_URL", raising=False)
        assert SharedCacheConfig().is_configured is False

    def test_redis_url_alias(self, monkeypatch) -> None:
        monkeypatch.delenv("DOCCHAT_SHARED_CACHE_URL", raising=False)
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
        cfg = SharedCacheConfig()
        assert cfg.url == "redis://cache:6379/0"
        assert cfg.is_configured is True

    def test_prefixed_url(self, monkeypatch) -> None:
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.setenv("DOCCHAT_SHARED_CACHE_URL", "redis://other:6379/1")
        assert SharedCacheConfig().url == "redis://other:6379/1"

    def test_explicit_value(self) -> None:
        assert SharedCacheConfig(url="redis://x").is_configured is True
