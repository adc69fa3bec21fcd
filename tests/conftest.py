"""Shared fixtures for docchat tests."""

from __future__ import annotations

import pytest

from docchat.core.config import AppSettings, SharedCacheConfig, TokenizerConfig
from docchat.tokens.budget import ContextBudgetManager
from docchat.tokens.tokenizer import TokenCounter


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0) -> None:
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> AppSettings:
    """Default test settings (approximate tokenizer, no shared tier)."""
    return AppSettings(
        tokenizer=TokenizerConfig(method="approximate"),
        shared_cache=SharedCacheConfig(url=""),
    )


@pytest.fixture
def unit_counter() -> TokenCounter:
    """One token per character, no per-message framing: costs equal content length."""
    return TokenCounter(method="approximate", char_to_token_ratio=1, message_overhead=0)


@pytest.fixture
def make_budget(unit_counter: TokenCounter):
    def _make(max_context_tokens: int, response_reserve: int, max_retrieval_tokens: int = 60_000) -> ContextBudgetManager:
        return ContextBudgetManager(
            unit_counter,
            max_context_tokens=max_context_tokens,
            response_reserve=response_reserve,
            max_retrieval_tokens=max_retrieval_tokens,
        )

    return _make
