"""docchat: token-budgeted context assembly and two-tier retrieval caching for document chat."""

from __future__ import annotations

from docchat.cache.invalidation import CacheInvalidator
from docchat.cache.service import RetrievalCache
from docchat.core.config import AppSettings
from docchat.exceptions import DocChatError, ErrorPayload, classify_error
from docchat.models import ChatMessage, ContextChunk, SearchResponse, SearchResult, TokenBreakdown, TruncationSummary
from docchat.retrieval.pipeline import ContextPlan, RetrievalPipeline
from docchat.tokens.budget import ContextBudgetManager
from docchat.tokens.tokenizer import TokenCounter

__all__ = [
    "AppSettings",
    "CacheInvalidator",
    "ChatMessage",
    "ContextBudgetManager",
    "ContextChunk",
    "ContextPlan",
    "DocChatError",
    "ErrorPayload",
    "RetrievalCache",
    "RetrievalPipeline",
    "SearchResponse",
    "SearchResult",
    "TokenBreakdown",
    "TokenCounter",
    "TruncationSummary",
    "classify_error",
]
