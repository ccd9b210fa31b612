"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recentview import __version__
from recentview.api.routes import health_router, recently_viewed_router, resolve_router
from recentview.client import RecentViewClient
from recentview.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of the client and its store.
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Initializing recentview client...")
    async with RecentViewClient(settings) as client:
        app.state.client = client
        logger.info("Application startup complete")

        yield

        logger.info("Shutting down application...")
        app.state.client = None

    logger.info("Application shutdown complete")


def create_app(
    *,
    title: str = "recentview API",
    description: str = "Recently viewed product resolution API",
    version: str = __version__,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        title: API title for OpenAPI docs
        description: API description for OpenAPI docs
        version: API version
        cors_origins: List of allowed CORS origins

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        description=description,
        version=version,
        lifespan=lifespan,
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    if cors_origins is None:
        cors_origins = ["http://localhost:9292"]  # Default for theme dev server

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(recently_viewed_router, prefix="/api/v1")
    app.include_router(resolve_router, prefix="/api/v1")

    return app
