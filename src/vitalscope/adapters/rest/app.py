"""
FastAPI application — device-local REST adapter for VitalScope.

Single user, no authentication: the API is meant to bind to localhost and
serve a front end on the same device.

Usage:
    python run_api.py

Or directly:
    uvicorn vitalscope.adapters.rest.app:app --host 127.0.0.1 --port 8000 --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vitalscope import __version__
from vitalscope.adapters.rest.dependencies import set_factory
from vitalscope.adapters.rest.routers import history, profile, scan
from vitalscope.domain.exceptions import (
    ConsentRequiredError,
    InvalidProfileError,
    InvalidScanTransitionError,
    NoImagesSelectedError,
    ProfileIncompleteError,
    ProfileNotConfiguredError,
    ScanInProgressError,
)
from vitalscope.factory import ServiceFactory
from vitalscope.infrastructure.config import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize ServiceFactory on startup; drain history writes on shutdown."""
    factory = getattr(app.state, "factory", None)
    if factory is None:
        config = Settings.from_env()
        logging.basicConfig(level=getattr(logging, config.log_level, logging.WARNING))
        factory = ServiceFactory(config)
    await factory.initialize()
    set_factory(factory)
    yield
    await factory.shutdown()


def create_app(factory: ServiceFactory | None = None) -> FastAPI:
    """Build the app. Tests pass a factory wired with fakes."""
    app = FastAPI(
        title="VitalScope",
        version=__version__,
        description="Personalized product health checks from photos.",
        lifespan=lifespan,
    )
    app.state.factory = factory

    # Front end runs on the same device but a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(profile.router)
    app.include_router(scan.router)
    app.include_router(history.router)

    _register_error_handlers(app)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app


def _register_error_handlers(app: FastAPI) -> None:
    conflicts = (ProfileNotConfiguredError, ScanInProgressError, InvalidScanTransitionError)
    unprocessable = (
        NoImagesSelectedError,
        InvalidProfileError,
        ProfileIncompleteError,
        ConsentRequiredError,
    )

    async def _conflict(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    async def _unprocessable(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    for exc_type in conflicts:
        app.add_exception_handler(exc_type, _conflict)
    for exc_type in unprocessable:
        app.add_exception_handler(exc_type, _unprocessable)


app = create_app()
