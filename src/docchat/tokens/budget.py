"""Context window budgeting.

Decides which conversation messages and retrieved chunks fit inside the
model's context window once the response allowance is reserved. History is
truncated from the oldest end; a leading system message is kept whenever it
fits on its own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from docchat.models import ChatMessage, ContextChunk, TokenBreakdown, TruncationSummary
from docchat.tokens.tokenizer import TokenCounter

if TYPE_CHECKING:
    from docchat.core.config import AppSettings

log = logging.getLogger(__name__)

MAX_CONTEXT_TOKENS = 128_000
RESPONSE_RESERVE = 2_000
MAX_RETRIEVAL_TOKENS = 60_000


class ContextBudgetManager:
    """Token accounting and sliding-window history truncation."""

    def __init__(
        self,
        counter: TokenCounter,
        max_context_tokens: int = MAX_CONTEXT_TOKENS,
        response_reserve: int = RESPONSE_RESERVE,
        max_retrieval_tokens: int = MAX_RETRIEVAL_TOKENS,
    ) -> None:
        self.counter = counter
        self.max_context_tokens = max_context_tokens
        self.response_reserve = response_reserve
        self.max_retrieval_tokens = max_retrieval_tokens

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        counter: Optional[TokenCounter] = None,
    ) -> ContextBudgetManager:
        return cls(
            counter=counter or TokenCounter.from_config(settings.tokenizer),
            max_context_tokens=settings.context.max_context_tokens,
            response_reserve=settings.context.response_reserve,
            max_retrieval_tokens=settings.context.max_retrieval_tokens,
        )

    def calculate_breakdown(
        self,
        messages: Sequence[ChatMessage],
        chunks: Sequence[ContextChunk] = (),
    ) -> TokenBreakdown:
        message_tokens = self.counter.count_messages(messages)
        context_tokens = self.counter.count_context(chunks)
        return TokenBreakdown(
            messages=message_tokens,
            context=context_tokens,
            response=self.response_reserve,
            total=message_tokens + context_tokens + self.response_reserve,
        )

    def fits_in_context(
        self,
        messages: Sequence[ChatMessage],
        chunks: Sequence[ContextChunk] = (),
    ) -> bool:
        return self.calculate_breakdown(messages, chunks).total <= self.max_context_tokens

    def get_available_tokens(self, messages: Sequence[ChatMessage]) -> int:
        """Tokens left for retrieved context after *messages* and the reserve."""
        message_tokens = self.counter.count_messages(messages)
        return max(0, self.max_context_tokens - message_tokens - self.response_reserve)

    def optimize_messages(
        self,
        messages: Sequence[ChatMessage],
        chunks: Sequence[ContextChunk] = (),
    ) -> list[ChatMessage]:
        """Return the largest recent suffix of *messages* that fits the budget.

        A leading system message is kept ahead of the suffix if its cost is
        strictly below the message allowance. Returns ``[]`` when the chunks
        and reserve alone exhaust the window.
        """
        messages = list(messages)
        if self.fits_in_context(messages, chunks):
            return messages

        context_tokens = self.counter.count_context(chunks)
        available = self.max_context_tokens - context_tokens - self.response_reserve
        if available <= 0:
            log.debug("Context (%d tokens) leaves no room for messages", context_tokens)
            return []

        used = 0
        head: list[ChatMessage] = []
        remaining = messages
        if messages and messages[0].role == "system":
            remaining = messages[1:]
            system_tokens = self.counter.count_message(messages[0])
            if system_tokens < available:
                head.append(messages[0])
                used += system_tokens

        tail: list[ChatMessage] = []
        for message in reversed(remaining):
            cost = self.counter.count_message(message)
            if used + cost > available:
                break
            tail.append(message)
            used += cost
        tail.reverse()

        return head + tail

    def fit_context_chunks(
        self,
        chunks: Sequence[ContextChunk],
        max_tokens: Optional[int] = None,
    ) -> list[ContextChunk]:
        """Keep chunks in rank order until the retrieval budget would overflow."""
        budget = self.max_retrieval_tokens if max_tokens is None else max_tokens
        kept: list[ContextChunk] = []
        used = 0
        for chunk in chunks:
            cost = self.counter.count_chunk(chunk)
            if used + cost > budget:
                break
            kept.append(chunk)
            used += cost
        return kept

    def get_truncation_summary(
        self,
        original: Sequence[ChatMessage],
        optimized: Sequence[ChatMessage],
    ) -> TruncationSummary:
        original_tokens = self.counter.count_messages(original)
        optimized_tokens = self.counter.count_messages(optimized)
        return TruncationSummary(
            original_tokens=original_tokens,
            optimized_tokens=optimized_tokens,
            removed_messages=len(original) - len(optimized),
            removed_tokens=original_tokens - optimized_tokens,
        )
