"""Token counting and context window budgeting."""

from __future__ import annotations

from docchat.tokens.budget import ContextBudgetManager
from docchat.tokens.tokenizer import TokenCounter

__all__ = ["ContextBudgetManager", "TokenCounter"]
