"""VendSight API.

FastAPI application receiving vendor CSV uploads.

Endpoints:
    GET  /health      — health check
    POST /api/upload  — ingest a vendor CSV export
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api_models import ErrorResponse, HealthResponse
from .config import Settings, get_settings
from .sales_store import SalesStore, create_store
from .upload_routes import create_upload_router

logger = logging.getLogger("vendsight.app")


def create_app(
    settings: Settings | None = None,
    store: SalesStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the cached environment settings.
        store: Storage backend; defaults to one built from ``settings``.
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = create_store(settings.supabase_url, settings.supabase_service_key)

    app = FastAPI(
        title="VendSight",
        version=__version__,
        description="Vending sales ingestion for iOS Vending and Cantaloupe exports.",
    )

    origins = ["*"] if settings.dev_mode else ["http://localhost:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------
    # Global exception handler
    # -----------------------------------------------------------------

    @app.exception_handler(Exception)
    async def general_error_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                code="INTERNAL_ERROR",
                message=(
                    "An unexpected error occurred during upload processing."
                ),
                detail=str(exc) if settings.dev_mode else None,
            ).model_dump(),
        )

    # -----------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(storage=store.name, dev_mode=settings.dev_mode)

    app.include_router(create_upload_router(settings, store))

    app.state.settings = settings
    app.state.store = store

    return app
