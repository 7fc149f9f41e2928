"""
Registrar Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (`uvicorn registrar.main:app`, or `python -m registrar`)
       and by the test suite with an injected engine.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌─────────────────┐               │
    │  │   Req ID     │→│    Logging      │               │
    │  └──────────────┘ └─────────────────┘               │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────┐ ┌─────────────────┐   │
    │  │ /students/ , /{id}       │ │ GET /health     │   │
    │  └──────────────────────────┘ └─────────────────┘   │
    │                                                     │
    │  Exception Handlers (by ErrorKind):                 │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ VALIDATION→400 │ NOT_FOUND→404 │ STORAGE→500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup (any failure aborts the server):
    1. Initialize logging
    2. Validate configuration (DATABASE_URL must be set)
    3. Build the engine and the StudentRepository, unless injected
    4. Ping the database
    5. Create missing tables when DB_AUTO_MIGRATE is on

    Shutdown:
    1. Dispose the database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from registrar import __version__
from registrar.config import settings
from registrar.database import (
    build_engine,
    build_session_factory,
    create_schema,
    dispose_engine,
    ping,
)
from registrar.exceptions import ConfigurationError, ErrorKind, RegistrarError
from registrar.middleware.logging import RequestLoggingMiddleware
from registrar.middleware.request_id import RequestIDMiddleware, request_id_var
from registrar.routes import health, students
from registrar.services.student_repository import StudentRepository

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,  # Override any existing logging config
    )

    # Our access middleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def attach_engine(app: FastAPI, engine: AsyncEngine) -> None:
    """Builds the repository over `engine` and publishes both on app.state."""
    app.state.engine = engine
    app.state.student_repository = StudentRepository(build_session_factory(engine))


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup errors are logged and re-raised so the server process exits
    instead of serving requests without a database.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Registrar Backend %s starting up...", __version__)

    if app.state.engine is None:
        try:
            settings.validate_required()
        except ConfigurationError as e:
            logger.critical("Error loading configuration: %s", e.message)
            raise
        attach_engine(
            app,
            build_engine(
                settings.database_url,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                echo=settings.log_level == "DEBUG",
            ),
        )
        logger.info("Configuration loaded successfully.")

    engine: AsyncEngine = app.state.engine

    try:
        await ping(engine)
    except Exception as e:
        logger.critical("Failed to connect to database: %s", str(e))
        await dispose_engine(engine)
        raise
    logger.info("Database connection established successfully.")

    if settings.db_auto_migrate:
        try:
            await create_schema(engine)
        except Exception as e:
            logger.critical("Failed to auto-migrate database: %s", str(e))
            await dispose_engine(engine)
            raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Registrar Backend shutting down...")
    await dispose_engine(engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORAGE: 500,
}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application errors to HTTP responses.

        ErrorKind.VALIDATION → 400 Bad Request
        ErrorKind.NOT_FOUND  → 404 Not Found
        ErrorKind.STORAGE    → 500 Internal Server Error
        Exception (fallback) → 500 Internal Server Error

    Every body has the shape {"error", "details", "request_id"}.
    """

    @app.exception_handler(RegistrarError)
    async def handle_registrar_error(request: Request, exc: RegistrarError):
        rid = request_id_var.get("")
        status_code = STATUS_BY_KIND.get(exc.kind, 500)

        if exc.kind is ErrorKind.STORAGE:
            logger.error("[%s] Storage error: %s | %s", rid, exc.message, exc.details)
        elif exc.kind is ErrorKind.VALIDATION:
            logger.warning("[%s] Validation error: %s | %s", rid, exc.message, exc.details)

        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.message,
                "details": exc.details,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace is logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "An unexpected error occurred",
                "details": None,
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(engine: Optional[AsyncEngine] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        engine: Pre-built async engine. When omitted, the lifespan builds one
                from DATABASE_URL at startup.
    """
    app = FastAPI(
        title="Registrar API",
        description="CRUD service for student records with soft delete.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.engine = None
    app.state.student_repository = None
    if engine is not None:
        attach_engine(app, engine)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(students.router)
    app.include_router(health.router)

    return app


# uvicorn expects `registrar.main:app` to be importable
app = create_app()
