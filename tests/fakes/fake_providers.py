"""Embedding and search provider fakes that count their calls."""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from docchat.interfaces.providers import IEmbeddingProvider, ISearchProvider
from docchat.models import SearchResult


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings derived from text length."""

    def __init__(self, *, error: Optional[BaseException] = None) -> None:
        self.calls: list[str] = []
        self.error = error

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return [float(len(text)), 0.5, 0.25]


class FakeSearchProvider(ISearchProvider):
    """Returns ``top_k`` canned results, one per document."""

    def __init__(self, *, error: Optional[BaseException] = None) -> None:
        self.calls: list[dict] = []
        self.error = error

    async def search(
        self,
        embedding: list[float],
        top_k: int,
        threshold: float,
        document_ids: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
    ) -> list[SearchResult]:
        self.calls.append(
            {"top_k": top_k, "threshold": threshold, "document_ids": document_ids, "user_id": user_id}
        )
        if self.error is not None:
            raise self.error
        return [
            SearchResult(
                chunk_id=f"c{i}",
                document_id=f"doc-{i}",
                content=f"passage {i}",
                similarity=round(0.9 - i * 0.1, 2),
                metadata={"page": i + 1},
            )
            for i in range(top_k)
        ]


class SlowSearchProvider(FakeSearchProvider):
    def __init__(self) -> None:
        super().__init__(error=asyncio.TimeoutError())
