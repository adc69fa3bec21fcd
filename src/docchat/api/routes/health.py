"""Liveness and readiness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: always returns 200 if the process is up."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness check: 503 until the retrieval cache has been wired at startup.

    A missing shared tier does not make the service unready; it only
    degrades caching to the local tier.
    """
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    if cache.shared is None:
        shared = "disabled"
    else:
        shared = "connected" if cache.shared.connected else "unavailable"
    return JSONResponse(content={"status": "ready", "sharedCache": shared})
