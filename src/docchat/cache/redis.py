"""Redis-backed shared cache tier using ``redis.asyncio``.

The client is created lazily on first use. A connection-level failure
discards it, so the next call starts from a fresh connection; there is no
reconnect loop or backoff.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from docchat.exceptions import SharedCacheError

log = logging.getLogger(__name__)

T = TypeVar("T")

_DELETE_BATCH = 500


class SharedCache:
    """Async key-value tier shared by every process pointing at the same Redis.

    Values are stored as JSON. All failures surface as ``SharedCacheError``.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_ms: int = 5000,
        scan_count: int = 500,
        client_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_ms / 1000 if timeout_ms > 0 else None
        self._scan_count = scan_count
        self._client_factory = client_factory or self._default_client
        self._client: Any | None = None

    def _default_client(self) -> Any:
        return aioredis.from_url(
            self._url,
            decode_responses=True,
            socket_timeout=self._timeout_s,
            socket_connect_timeout=self._timeout_s,
        )

    def _get_client(self) -> Any:
        """Lazy-initialize the Redis async client."""
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    @property
    def connected(self) -> bool:
        """Whether a client handle is currently held."""
        return self._client is not None

    async def _call(self, op: Callable[[Any], Awaitable[T]]) -> T:
        client = self._get_client()
        try:
            return await op(client)
        except (RedisConnectionError, RedisTimeoutError, OSError) as exc:
            log.warning("Shared cache connection error, dropping client: %s", exc)
            await self._discard(client)
            raise SharedCacheError(f"Shared cache unavailable: {exc}") from exc
        except RedisError as exc:
            raise SharedCacheError(f"Shared cache operation failed: {exc}") from exc

    async def _discard(self, client: Any) -> None:
        if self._client is client:
            self._client = None
        try:
            await client.aclose()
        except (RedisError, OSError) as exc:
            log.debug("Ignoring error while closing shared cache client: %s", exc)

    async def get(self, key: str) -> Any | None:
        """Retrieve and decode a value. Returns None when absent (Redis handles TTL)."""
        raw = await self._call(lambda c: c.get(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise SharedCacheError(f"Malformed cached payload under {key!r}") from exc

    async def set_with_expiry(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value with Redis-native expiry. A non-positive TTL stores without expiry."""
        serialized = json.dumps(value)
        if ttl_seconds > 0:
            await self._call(lambda c: c.setex(key, ttl_seconds, serialized))
        else:
            await self._call(lambda c: c.set(key, serialized))

    async def delete_matching(self, pattern: str) -> int:
        """Delete every key matching a glob *pattern*. Returns the number deleted."""

        async def _delete(client: Any) -> int:
            deleted = 0
            batch: list[str] = []
            async for key in client.scan_iter(match=pattern, count=self._scan_count):
                batch.append(key)
                if len(batch) >= _DELETE_BATCH:
                    deleted += await client.delete(*batch)
                    batch = []
            if batch:
                deleted += await client.delete(*batch)
            return deleted

        return await self._call(_delete)

    async def ping(self) -> Optional[float]:
        """Round-trip latency in ms, or None when no client is held or Redis is unreachable."""
        if self._client is None:
            return None
        started = time.perf_counter()
        try:
            await self._call(lambda c: c.ping())
        except SharedCacheError:
            return None
        return round((time.perf_counter() - started) * 1000, 2)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._discard(self._client)
