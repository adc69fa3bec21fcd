"""Cache statistics and invalidation endpoints."""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from docchat.api.auth import require_caller
from docchat.api.rate_limit import enforce_rate_limit
from docchat.cache.report import build_health_summary, build_stats_report, render_text_report
from docchat.exceptions import RequestValidationFailed

log = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


class InvalidationRequest(BaseModel):
    """Invalidation event: a deleted user or an updated document."""

    type: Literal["user", "document"]
    id: str = Field(..., min_length=1)


class InvalidationResponse(BaseModel):
    invalidated: int
    stats: dict[str, Any]


async def _report(req: Request) -> dict[str, Any]:
    cache = req.app.state.cache
    ping_ms = await cache.ping_shared()
    return build_stats_report(cache.get_cache_stats(ping_ms), req.app.state.settings)


@router.get("/stats", response_model=None)
async def cache_stats(
    req: Request,
    format: str = Query("json", description="json or text"),
) -> Any:
    """Cache sizes, hit/miss counters and shared-tier connectivity."""
    if format not in ("json", "text"):
        raise RequestValidationFailed('format must be "json" or "text"')
    report = await _report(req)
    if format == "text":
        return PlainTextResponse(render_text_report(report))
    return report


@router.get("/invalidate")
async def cache_health(req: Request) -> dict[str, Any]:
    """Short health view of the cache service."""
    return build_health_summary(req.app.state.cache.get_cache_stats())


@router.post(
    "/invalidate",
    response_model=InvalidationResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def invalidate(
    request: InvalidationRequest,
    req: Request,
    caller: str = Depends(require_caller),
) -> InvalidationResponse:
    """Apply a user-delete or document-update invalidation."""
    invalidator = req.app.state.invalidator
    if request.type == "user":
        invalidated = await invalidator.invalidate_user(request.id)
    else:
        invalidated = await invalidator.invalidate_document(request.id)

    log.info(
        "Cache invalidation",
        extra={"type": request.type, "target": request.id, "caller": caller, "invalidated": invalidated},
    )
    return InvalidationResponse(invalidated=invalidated, stats=await _report(req))
