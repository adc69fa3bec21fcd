"""Retrieval pipeline: cached embedding + search, then token-bounded prompt assembly.

Flow for one chat turn::

    query → embedding cache → (miss) embed → query cache → (miss) search
          → fit chunks to the retrieval budget → truncate history → ContextPlan
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from docchat.cache.key_strategy import embedding_key, preprocess_query, query_key
from docchat.cache.service import RetrievalCache
from docchat.exceptions import (
    DocChatError,
    EmbeddingError,
    RequestValidationFailed,
    SearchError,
    classify_error,
)
from docchat.interfaces.providers import IEmbeddingProvider, ISearchProvider
from docchat.models import (
    ChatMessage,
    ContextChunk,
    SearchResponse,
    TokenBreakdown,
    TruncationSummary,
)
from docchat.tokens.budget import ContextBudgetManager

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ContextPlan:
    """The bounded prompt inputs for one model call."""

    messages: list[ChatMessage]
    chunks: list[ContextChunk]
    breakdown: TokenBreakdown
    truncation: TruncationSummary

    @property
    def truncated(self) -> bool:
        return self.truncation.removed_messages > 0


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _is_embedding(data: Any) -> bool:
    return (
        isinstance(data, list)
        and bool(data)
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in data)
    )


def _is_search_response(data: Any) -> bool:
    try:
        SearchResponse.model_validate(data)
    except ValidationError:
        return False
    return True


class RetrievalPipeline:
    """Serves queries through the retrieval cache and the context budget."""

    def __init__(
        self,
        cache: RetrievalCache,
        budget: ContextBudgetManager,
        embedder: Optional[IEmbeddingProvider] = None,
        searcher: Optional[ISearchProvider] = None,
    ) -> None:
        self.cache = cache
        self.budget = budget
        self.embedder = embedder
        self.searcher = searcher

    @staticmethod
    def _normalize(query: str) -> str:
        normalized = preprocess_query(query)
        if not normalized:
            raise RequestValidationFailed("Query cannot be empty after preprocessing")
        return normalized

    async def embed_query(self, query: str) -> list[float]:
        """Embedding for *query*, served from cache when possible."""
        normalized = self._normalize(query)
        if self.embedder is None:
            raise EmbeddingError("No embedding provider configured")
        embedder = self.embedder

        async def compute() -> list[float]:
            started = time.perf_counter()
            try:
                embedding = await embedder.embed(normalized)
            except DocChatError:
                raise
            except Exception as exc:
                log.error("Embedding provider failed: %s", exc)
                raise classify_error(exc, operation="Embedding request", fallback=EmbeddingError) from exc
            log.info("Generated embedding in %.0fms", _elapsed_ms(started))
            return embedding

        embedding, _ = await self.cache.embeddings.get_or_compute(
            embedding_key(normalized), compute, _is_embedding
        )
        return [float(v) for v in embedding]

    async def search(
        self,
        query: str,
        *,
        top_k: int = 5,
        threshold: float = 0.5,
        document_ids: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
    ) -> SearchResponse:
        """Search results for *query*; ``cached`` reports whether the query cache served them."""
        normalized = self._normalize(query)
        if self.searcher is None:
            raise SearchError("No search provider configured")
        searcher = self.searcher

        async def compute() -> dict[str, Any]:
            embedding = await self.embed_query(normalized)
            started = time.perf_counter()
            try:
                results = await searcher.search(
                    embedding,
                    top_k,
                    threshold,
                    document_ids=document_ids,
                    user_id=user_id,
                )
            except DocChatError:
                raise
            except Exception as exc:
                log.error("Search provider failed: %s", exc)
                raise classify_error(exc, operation="Search operation", fallback=SearchError) from exc
            log.info("Search returned %d results in %.0fms", len(results), _elapsed_ms(started))
            return SearchResponse(query=normalized, results=list(results)).model_dump(mode="json")

        payload, cached = await self.cache.queries.get_or_compute(
            query_key(normalized, top_k, threshold, document_ids, user_id), compute, _is_search_response
        )
        return SearchResponse.model_validate(payload).model_copy(update={"cached": cached})

    def plan_context(
        self,
        history: Sequence[ChatMessage],
        chunks: Sequence[ContextChunk],
    ) -> ContextPlan:
        """Fit chunks to the retrieval budget, then truncate history to what remains."""
        fitted = self.budget.fit_context_chunks(chunks)
        messages = self.budget.optimize_messages(history, fitted)
        truncation = self.budget.get_truncation_summary(history, messages)
        if truncation.removed_messages:
            log.info(
                "Context truncated: removed %d messages (%d tokens) to fit token limit",
                truncation.removed_messages,
                truncation.removed_tokens,
            )
        return ContextPlan(
            messages=messages,
            chunks=fitted,
            breakdown=self.budget.calculate_breakdown(messages, fitted),
            truncation=truncation,
        )

    async def prepare(
        self,
        query: str,
        history: Sequence[ChatMessage],
        **search_options: Any,
    ) -> tuple[SearchResponse, ContextPlan]:
        """Search for *query* and plan the prompt around its results."""
        response = await self.search(query, **search_options)
        chunks = [r.to_context_chunk() for r in response.results]
        return response, self.plan_context(history, chunks)
