"""FastAPI application with lifespan management.

Service instances (token budget, retrieval cache, invalidator, pipeline) are
built once in the lifespan and stored on ``app.state`` for handlers.
"""

from __future__ import annotations

import importlib.metadata
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

from fastapi import Depends, FastAPI

from docchat.api.auth import require_auth
from docchat.api.middleware.error_handler import register_error_handlers
from docchat.api.rate_limit import FixedWindowRateLimiter, enforce_rate_limit
from docchat.api.routes import cache, context, health
from docchat.cache.invalidation import CacheInvalidator
from docchat.cache.service import RetrievalCache
from docchat.cache.tiered import SharedTier
from docchat.core.config import APIConfig, AppSettings
from docchat.core.logging_config import setup_logging
from docchat.core.startup_checks import validate_settings
from docchat.interfaces.providers import IEmbeddingProvider, ISearchProvider
from docchat.retrieval.pipeline import RetrievalPipeline
from docchat.tokens.budget import ContextBudgetManager
from docchat.tokens.tokenizer import TokenCounter


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("docchat")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    shared: Optional[SharedTier] = None,
    embedder: Optional[IEmbeddingProvider] = None,
    searcher: Optional[ISearchProvider] = None,
    clock: Optional[Callable[[], float]] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Build the app. Arguments override what the lifespan would build from env."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application startup/shutdown lifecycle."""
        app_settings = settings or AppSettings()
        validate_settings(app_settings)
        if configure_logging:
            setup_logging(app_settings.observability)

        counter = TokenCounter.from_config(app_settings.tokenizer)
        budget = ContextBudgetManager.from_settings(app_settings, counter)
        retrieval_cache = RetrievalCache.from_settings(app_settings, shared=shared, clock=clock)

        app.state.settings = app_settings
        app.state.cache = retrieval_cache
        app.state.invalidator = CacheInvalidator(retrieval_cache, app_settings.invalidation)
        app.state.pipeline = RetrievalPipeline(retrieval_cache, budget, embedder, searcher)
        app.state.rate_limiter = FixedWindowRateLimiter.from_config(app_settings.rate_limit, clock=clock)
        try:
            yield
        finally:
            await retrieval_cache.aclose()
            counter.close()

    api_config = settings.api if settings is not None else APIConfig()
    app = FastAPI(
        title=api_config.title,
        description=api_config.description,
        version=_get_version(),
        lifespan=lifespan,
    )
    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(cache.router, prefix="/api")
    app.include_router(
        context.router,
        prefix="/api",
        dependencies=[Depends(require_auth), Depends(enforce_rate_limit)],
    )
    return app


app = create_app()
