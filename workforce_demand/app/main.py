"""Workforce demand analytics FastAPI application."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workforce_demand.app.analytics.router import router as analytics_router
from workforce_demand.app.analytics.service import InvalidDateWindowError
from workforce_demand.app.core.config import Settings, get_settings
from workforce_demand.app.core.database import Database
from workforce_demand.app.core.log_config import configure_logging
from workforce_demand.app.ingest.router import router as upload_router
from workforce_demand.app.ingest.service import UploadValidationError

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url, echo=settings.database_echo)
        database.init_schema()
        app.state.database = database
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    api_prefix = settings.api_prefix.rstrip("/")
    app.include_router(upload_router, prefix=api_prefix)
    app.include_router(analytics_router, prefix=api_prefix)

    # Exception Handlers
    @app.exception_handler(UploadValidationError)
    async def upload_validation_handler(request: Request, exc: UploadValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    @app.exception_handler(InvalidDateWindowError)
    async def date_window_handler(request: Request, exc: InvalidDateWindowError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    @app.get(f"{api_prefix}/health")
    def health() -> dict[str, str]:
        return {
            "status": "ok",
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "version": settings.app_version,
        }

    @app.get("/")
    def root() -> dict:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "upload": f"{api_prefix}/upload",
                "analytics": f"{api_prefix}/analytics",
                "health": f"{api_prefix}/health",
            },
        }

    return app


app = create_app()
