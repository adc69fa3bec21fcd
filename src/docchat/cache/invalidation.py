"""Coarse cache invalidation for user deletion and document updates.

Entries are keyed by content fingerprint, not by owner, so the local tier
cannot be invalidated selectively. Both operations clear whole local kinds
and remove shared-tier keys by pattern. Over-invalidating costs recomputation;
under-invalidating would serve stale data across users.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docchat.cache.service import QUERY_NAMESPACE, RetrievalCache

if TYPE_CHECKING:
    from docchat.core.config import InvalidationConfig

log = logging.getLogger(__name__)


class CacheInvalidator:
    """Applies invalidation events to a ``RetrievalCache``.

    Returned counts are exact for local clears and approximate for the
    shared tier. They are informational only.
    """

    def __init__(self, cache: RetrievalCache, config: InvalidationConfig) -> None:
        self.cache = cache
        self.config = config

    async def invalidate_user(self, user_id: str) -> int:
        """Clear both local kinds and shared keys embedding ``user_id``."""
        if not self.config.on_user_delete:
            log.info("User invalidation disabled; skipping user %s", user_id)
            return 0

        invalidated = self.cache.embeddings.clear_local() + self.cache.queries.clear_local()
        invalidated += await self.cache.delete_shared_matching(f"*:{user_id}:*")

        log.info("Invalidated %d cache entries for user %s", invalidated, user_id)
        return invalidated

    async def invalidate_document(self, document_id: str) -> int:
        """Clear every query result, locally and in the shared query namespace.

        Results are not indexed by the documents they cite, so this is a full
        clear of the query kind rather than a per-document one.
        """
        if not self.config.on_document_update:
            log.info("Document invalidation disabled; skipping document %s", document_id)
            return 0

        invalidated = self.cache.queries.clear_local()
        invalidated += await self.cache.delete_shared_matching(f"{QUERY_NAMESPACE}:*")

        log.info("Invalidated %d cache entries for document %s", invalidated, document_id)
        return invalidated
