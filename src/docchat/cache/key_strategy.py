"""Cache key computation: normalised queries hashed into compact fingerprints."""

from __future__ import annotations

import hashlib
import re
from typing import Optional, Sequence

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w\s?.-]")


def preprocess_query(query: str) -> str:
    """Normalise a query so equivalent phrasings share cache entries.

    Lowercases, collapses whitespace and strips punctuation other than
    ``?``, ``.`` and ``-``. Idempotent.
    """
    stripped = _DISALLOWED.sub("", query.lower())
    return _WHITESPACE.sub(" ", stripped).strip()


def fingerprint(*parts: object) -> str:
    """Deterministic SHA-256 hex digest of the ``|``-joined parts."""
    raw = "|".join(str(p) for p in parts)
    return hashlib.sha256(raw.encode()).hexdigest()


def embedding_key(query: str) -> str:
    return fingerprint("embedding", preprocess_query(query))


def query_key(
    query: str,
    top_k: int,
    threshold: float,
    document_ids: Optional[Sequence[str]] = None,
    user_id: Optional[str] = None,
) -> str:
    """Key for a full search result, isolated by filter parameters.

    With *user_id* the key is ``"{user_id}:{digest}"`` so shared-tier keys
    can be removed per user by pattern.
    """
    doc_filter = ",".join(sorted(document_ids)) if document_ids else "all"
    digest = fingerprint("search", preprocess_query(query), top_k, threshold, doc_filter)
    if user_id:
        return f"{user_id}:{digest}"
    return digest
