"""Pluggable token counter.

Modes:
  - ``tiktoken``: OpenAI tiktoken encoding for the configured model (default)
  - ``approximate``: chars / ratio (no encoder, fast)

Message cost is content tokens plus a framing overhead. The same
``count_message`` is used by every budgeting path.
"""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING, Iterable, Literal, Optional

import tiktoken

from docchat.exceptions import TokenizerError
from docchat.models import ChatMessage, ContextChunk

if TYPE_CHECKING:
    from docchat.core.config import TokenizerConfig

log = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
TOKENS_PER_WORD = 1.25


class TokenCounter:
    """Count tokens using the configured method.

    The tiktoken encoder is loaded lazily and released by ``close()``;
    counters used briefly should be used as context managers.
    """

    def __init__(
        self,
        method: Literal["approximate", "tiktoken"] = "tiktoken",
        model: str = "gpt-4",
        char_to_token_ratio: int = CHARS_PER_TOKEN,
        fallback_encoding: str = "cl100k_base",
        message_overhead: Optional[int] = None,
    ) -> None:
        if method not in ("approximate", "tiktoken"):
            raise TokenizerError(f"Unknown tokenizer method: {method!r}")
        self.method = method
        self.model = model
        self._char_to_token_ratio = char_to_token_ratio
        self._fallback_encoding = fallback_encoding
        self._message_overhead = message_overhead
        self._encoder: Optional[tiktoken.Encoding] = None

    @classmethod
    def from_config(cls, config: TokenizerConfig) -> TokenCounter:
        return cls(
            method=config.method,
            model=config.model,
            char_to_token_ratio=config.char_to_token_ratio,
            fallback_encoding=config.fallback_encoding,
            message_overhead=config.message_overhead,
        )

    # ── Counting ─────────────────────────────────────────────────────

    def count(self, text: str) -> int:
        """Return the token count for *text*. Empty input costs nothing."""
        if not text:
            return 0
        if self.method == "approximate":
            return max(1, len(text) // self._char_to_token_ratio)
        # Special-token markers in user text are counted as plain text.
        return len(self._get_encoder().encode(text, disallowed_special=()))

    def count_message(self, message: ChatMessage) -> int:
        """Content tokens plus the role marker and separator framing."""
        content_tokens = self.count(message.content)
        if self._message_overhead is not None:
            return content_tokens + self._message_overhead
        return content_tokens + self.count(f"\n{message.role}:") + 1

    def count_messages(self, messages: Iterable[ChatMessage]) -> int:
        return sum(self.count_message(m) for m in messages)

    def count_chunk(self, chunk: ContextChunk) -> int:
        total = self.count(chunk.content)
        if chunk.metadata is not None:
            total += self.count(json.dumps(chunk.metadata, separators=(",", ":"), ensure_ascii=False, default=str))
        return total

    def count_context(self, chunks: Iterable[ContextChunk]) -> int:
        return sum(self.count_chunk(c) for c in chunks)

    # ── Quick estimates (no encoder) ────────────────────────────────

    @staticmethod
    def estimate_from_chars(char_count: int) -> int:
        return math.ceil(char_count / CHARS_PER_TOKEN)

    @staticmethod
    def estimate_from_words(word_count: int) -> int:
        return math.ceil(word_count * TOKENS_PER_WORD)

    # ── Encoder lifecycle ───────────────────────────────────────────

    def _get_encoder(self) -> tiktoken.Encoding:
        if self._encoder is None:
            try:
                self._encoder = tiktoken.encoding_for_model(self.model)
            except KeyError:
                log.debug("No tiktoken encoding for %s, using %s", self.model, self._fallback_encoding)
                self._encoder = tiktoken.get_encoding(self._fallback_encoding)
        return self._encoder

    def close(self) -> None:
        """Drop the encoder reference. A later ``count`` reloads it."""
        self._encoder = None

    def __enter__(self) -> TokenCounter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
