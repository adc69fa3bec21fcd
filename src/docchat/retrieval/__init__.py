"""Retrieval orchestration over the cache and context budget."""

from __future__ import annotations

from docchat.retrieval.pipeline import ContextPlan, RetrievalPipeline

__all__ = ["ContextPlan", "RetrievalPipeline"]
