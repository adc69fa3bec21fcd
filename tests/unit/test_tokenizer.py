"""Unit tests for the token counter."""

import pytest

from docchat.exceptions import TokenizerError
from docchat.models import ChatMessage, ContextChunk
from docchat.tokens.tokenizer import TokenCounter


class _WhitespaceEncoder:
    """Stands in for a tiktoken Encoding: one token per whitespace-separated word."""

    def __init__(self):
        self.calls = []

    def encode(self, text, disallowed_special=()):
        self.calls.append(disallowed_special)
        return text.split()


class TestApproximateTokenizer:
    def test_empty_string(self):
        tc = TokenCounter(method="approximate")
        assert tc.count("") == 0

    def test_short_string(self):
        tc = TokenCounter(method="approximate")
        # "hello" is 5 chars => 5 // 4 = 1
        assert tc.count("hello") == 1

    def test_tiny_string_costs_at_least_one(self):
        tc = TokenCounter(method="approximate")
        assert tc.count("hi") == 1

    def test_longer_string(self):
        tc = TokenCounter(method="approximate")
        assert tc.count("a" * 400) == 100

    def test_custom_ratio(self):
        tc = TokenCounter(method="approximate", char_to_token_ratio=1)
        assert tc.count("abcdef") == 6

    def test_unknown_method_rejected(self):
        with pytest.raises(TokenizerError):
            TokenCounter(method="sentencepiece")


class TestMessageCost:
    def test_role_marker_overhead(self):
        tc = TokenCounter(method="approximate")
        # 10 content tokens + "\nuser:" (6 chars => 1) + 1 separator
        assert tc.count_message(ChatMessage(role="user", content="a" * 40)) == 12

    def test_overhead_depends_on_role(self):
        tc = TokenCounter(method="approximate")
        # "\nassistant:" is 11 chars => 2
        assert tc.count_message(ChatMessage(role="assistant", content="a" * 40)) == 13

    def test_configured_overhead_replaces_formula(self):
        tc = TokenCounter(method="approximate", message_overhead=4)
        assert tc.count_message(ChatMessage(role="user", content="a" * 40)) == 14

    def test_empty_message_still_costs_framing(self):
        tc = TokenCounter(method="approximate")
        assert tc.count_message(ChatMessage(role="user", content="")) == 2

    def test_count_messages_sums(self):
        tc = TokenCounter(method="approximate", char_to_token_ratio=1, message_overhead=0)
        msgs = [ChatMessage(role="user", content="abc"), ChatMessage(role="assistant", content="de")]
        assert tc.count_messages(msgs) == 5
        assert tc.count_messages([]) == 0


class TestChunkCost:
    def test_chunk_without_metadata(self):
        tc = TokenCounter(method="approximate")
        assert tc.count_chunk(ContextChunk(content="a" * 40)) == 10

    def test_metadata_is_counted_as_json(self):
        tc = TokenCounter(method="approximate", char_to_token_ratio=1)
        # '{"a":1}' is 7 chars
        assert tc.count_chunk(ContextChunk(content="abc", metadata={"a": 1})) == 10

    def test_count_context_sums(self):
        tc = TokenCounter(method="approximate", char_to_token_ratio=1)
        chunks = [ContextChunk(content="abcd"), ContextChunk(content="ef")]
        assert tc.count_context(chunks) == 6


class TestEstimates:
    def test_estimate_from_chars_rounds_up(self):
        assert TokenCounter.estimate_from_chars(10) == 3
        assert TokenCounter.estimate_from_chars(8) == 2
        assert TokenCounter.estimate_from_chars(0) == 0

    def test_estimate_from_words_rounds_up(self):
        assert TokenCounter.estimate_from_words(3) == 4
        assert TokenCounter.estimate_from_words(4) == 5


class TestEncoderLifecycle:
    def test_uses_loaded_encoder(self):
        tc = TokenCounter(method="tiktoken")
        tc._encoder = _WhitespaceEncoder()
        assert tc.count("three little words") == 3

    def test_special_tokens_treated_as_text(self):
        tc = TokenCounter(method="tiktoken")
        encoder = _WhitespaceEncoder()
        tc._encoder = encoder
        tc.count("<|endoftext|> marker")
        assert encoder.calls == [()]

    def test_close_releases_encoder(self):
        tc = TokenCounter(method="tiktoken")
        tc._encoder = _WhitespaceEncoder()
        tc.close()
        assert tc._encoder is None

    def test_context_manager_closes(self):
        with TokenCounter(method="tiktoken") as tc:
            tc._encoder = _WhitespaceEncoder()
        assert tc._encoder is None

    def test_from_config(self):
        from docchat.core.config import TokenizerConfig

        tc = TokenCounter.from_config(TokenizerConfig(method="approximate", char_to_token_ratio=2))
        assert tc.method == "approximate"
        assert tc.count("abcd") == 2
