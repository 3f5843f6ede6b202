"""
FastAPI application factory for MediTerm.

This module builds the ASGI app. It is responsible for:
1.  **Middleware Setup**: CORS so browser front-ends can call the API.
2.  **Exception Handling**: pipeline errors become structured JSON with a
    status per error kind (auth 401, quota 429, transport 502).
3.  **Routing**: translation jobs, text utilities, health.
4.  **Lifecycle**: initializing the in-memory job store.

`create_app` is a factory so tests can build a fresh app per test.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mediterm import __version__
from mediterm.api.job_store import JobStore
from mediterm.api.routers import text, translate
from mediterm.core.errors import (
    AuthError,
    MediTermError,
    QuotaExceeded,
    StaleRequestError,
    TransportError,
)
from mediterm.core.settings import get_logger

logger = get_logger(__name__)

_ERROR_STATUS: tuple[tuple[type[MediTermError], int, str], ...] = (
    (AuthError, 401, "auth"),
    (QuotaExceeded, 429, "quota"),
    (TransportError, 502, "transport"),
    (StaleRequestError, 409, "stale"),
)


def error_status(exc: MediTermError) -> tuple[int, str]:
    """Return ``(http_status, kind)`` for a pipeline error."""
    for cls, code, kind in _ERROR_STATUS:
        if isinstance(exc, cls):
            return code, kind
    return 500, "internal"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the job store on startup."""
    logger.info("MediTerm API starting up")
    JobStore.get_instance()
    yield
    logger.info("MediTerm API shutting down")


def create_app() -> FastAPI:
    """
    Construct and configure the MediTerm FastAPI application.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    app = FastAPI(
        title="MediTerm API",
        description="Term-aware medical translation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MediTermError)
    async def pipeline_error_handler(request: Request, exc: MediTermError) -> JSONResponse:
        """Map pipeline errors to a status code plus the user-facing hint."""
        code, kind = error_status(exc)
        return JSONResponse(
            status_code=code,
            content={
                "error": kind,
                "detail": str(exc),
                "hint": exc.user_hint,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map Python ValueErrors to HTTP 400 Bad Request."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    app.include_router(translate.router)
    app.include_router(text.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {"status": "ok", "version": __version__}

    return app


__all__ = ["create_app", "error_status"]
