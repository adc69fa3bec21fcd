"""Context planning endpoint: token-bounded prompt assembly for a chat turn."""

from __future__ import annotations

import dataclasses

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from docchat.models import ChatMessage, ContextChunk

router = APIRouter(prefix="/context", tags=["context"])


class ContextPlanRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    chunks: list[ContextChunk] = Field(default_factory=list)


class ContextPlanResponse(BaseModel):
    messages: list[ChatMessage]
    chunks: list[ContextChunk]
    breakdown: dict[str, int]
    truncation: dict[str, int]
    truncated: bool


@router.post("/plan", response_model=ContextPlanResponse)
async def plan_context(request: ContextPlanRequest, req: Request, response: Response) -> ContextPlanResponse:
    """Trim chunks and history to the context window and report token usage."""
    pipeline = req.app.state.pipeline
    plan = pipeline.plan_context(request.messages, request.chunks)

    response.headers["X-Token-Input"] = str(plan.breakdown.messages)
    response.headers["X-Token-Context"] = str(plan.breakdown.context)
    response.headers["X-Token-Reserved"] = str(plan.breakdown.response)
    response.headers["X-Token-Total"] = str(plan.breakdown.total)
    response.headers["X-Token-Limit"] = str(pipeline.budget.max_context_tokens)

    return ContextPlanResponse(
        messages=plan.messages,
        chunks=plan.chunks,
        breakdown=dataclasses.asdict(plan.breakdown),
        truncation=dataclasses.asdict(plan.truncation),
        truncated=plan.truncated,
    )
