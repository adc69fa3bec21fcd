"""Provider contracts for the retrieval pipeline."""

from __future__ import annotations

from docchat.interfaces.providers import IEmbeddingProvider, ISearchProvider

__all__ = ["IEmbeddingProvider", "ISearchProvider"]
