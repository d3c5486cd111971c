# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kvmodel import __version__
from kvmodel.api.binding import build_router
from kvmodel.api.middleware import RequestMiddleware
from kvmodel.api.routes import health
from kvmodel.core.config import Settings
from kvmodel.model import KeyValueModel


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    yield

    await app.state.model.close()


def default_base_path(model: KeyValueModel) -> str:
    return f"/api/v1/{model.name.lower()}"


def create_app(
    model: KeyValueModel | None = None,
    *,
    base_path: str | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API for *model* (default: the configured singleton).

    Args:
        model: Model to expose.
        base_path: Mount point of the key-value routes.  ``None`` uses
            ``settings.api_base_path`` or ``/api/v1/<model name>``; ``""``
            mounts them at the root.
        settings: Settings override; read from the environment otherwise.
    """
    if settings is None:
        from kvmodel.core.config import get_settings

        settings = get_settings()
    if model is None:
        from kvmodel.manager import get_model

        model = get_model()
    if base_path is None:
        base_path = settings.api_base_path or default_base_path(model)

    app = FastAPI(
        title="kvmodel",
        description="Key-value model REST API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.state.model = model

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(build_router(model), prefix=base_path.rstrip("/"), tags=[model.name])
    app.add_middleware(RequestMiddleware)

    return app


def _create_app_from_env() -> FastAPI:
    """Factory used by ``kvmodel serve``: configure logging, then build the app."""
    from kvmodel.core.config import get_settings
    from kvmodel.core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    return create_app(settings=settings)
