"""Abstract embedding and search providers consumed by the retrieval pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from docchat.models import SearchResult


class IEmbeddingProvider(ABC):
    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embedding vector for already-normalised query text."""


class ISearchProvider(ABC):
    @abstractmethod
    async def search(
        self,
        embedding: list[float],
        top_k: int,
        threshold: float,
        document_ids: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
    ) -> list[SearchResult]:
        """Nearest chunks above ``threshold``, best first."""
