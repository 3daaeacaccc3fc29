"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Generator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from blindtaste.core.config import Settings, load_settings
from blindtaste.core.errors import TastingError
from blindtaste.db.repo import DbSession
from blindtaste.db.session import get_session, init_db

logger = logging.getLogger(__name__)


def get_db_session(request: Request) -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session(request.app.state.settings.database_path)
    try:
        yield session
    finally:
        session.close()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    msg = first.get("msg", "Invalid input")
    return f"{loc}: {msg}" if loc else msg


def _register_error_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": message}``."""

    @app.exception_handler(TastingError)
    async def tasting_error_handler(request: Request, exc: TastingError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} conflicted: {exc.orig}")
        return JSONResponse(status_code=409, content={"error": "Conflicting update"})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or load_settings()

    logging.basicConfig(level=settings.log_level, format=settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_db(settings.database_path)
        if not settings.admin_secret:
            logger.warning("Admin secret not configured - admin routes are disabled")
        if not settings.session_secret:
            logger.warning("Session secret not configured - participants cannot join")
        yield

    app = FastAPI(
        title="Blind Tasting API",
        description="Blind wine tasting: join, rate, reveal, rank",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Include routes
    from blindtaste.api.routes import (
        admin,
        criteria,
        participants,
        ratings,
        reports,
        tastings,
    )

    app.include_router(admin.router, prefix="/api")
    app.include_router(criteria.router, prefix="/api")
    app.include_router(participants.router, prefix="/api")
    app.include_router(ratings.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")
    app.include_router(tastings.router, prefix="/api")

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
