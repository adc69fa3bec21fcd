"""Data models shared by the token budgeting and retrieval layers."""

from __future__ import annotations

import dataclasses
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """One conversation turn. Order within a history is significant."""

    model_config = {"frozen": True}

    role: Role
    content: str


class ContextChunk(BaseModel):
    """A retrieved passage offered to the model as grounding context."""

    model_config = {"frozen": True}

    content: str
    metadata: Optional[dict[str, Any]] = None


@dataclasses.dataclass(frozen=True)
class TokenBreakdown:
    """Token cost of a request, split by component."""

    messages: int
    context: int
    response: int
    total: int


@dataclasses.dataclass(frozen=True)
class TruncationSummary:
    """What history optimisation dropped. Diagnostic only."""

    original_tokens: int
    optimized_tokens: int
    removed_messages: int
    removed_tokens: int


class SearchResult(BaseModel):
    """A single chunk returned by the search provider."""

    chunk_id: str
    document_id: str
    content: str
    similarity: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_context_chunk(self) -> ContextChunk:
        return ContextChunk(
            content=self.content,
            metadata={"document_id": self.document_id, **self.metadata},
        )


class SearchResponse(BaseModel):
    """Full, cacheable result of one search call."""

    query: str
    results: list[SearchResult] = Field(default_factory=list)
    cached: bool = False
