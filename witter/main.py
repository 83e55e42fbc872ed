"""
Witter API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, exception handling, route
       mounting and lifecycle management in one place.
How:   create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn witter.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐                  │
    │  │  Req ID  │→│ Logging  │→│   CORS   │                  │
    │  └──────────┘ └──────────┘ └──────────┘                  │
    │                                                          │
    │  Routes:                                                 │
    │  /account  /profile  /users  /weets  /validate  /health  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  WitterError→status of the subclass │ DB→500 │ 404 │ 400 │
    └──────────────────────────────────────────────────────────┘

Error body (every failure):
    {"status": 403, "error": "conflict", "message": "...", "request_id": "a1b2c3d4"}
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from witter import __version__
from witter.config import settings
from witter.database import dispose_engine
from witter.exceptions import DatabaseError, WitterError
from witter.middleware.logging import RequestLoggingMiddleware
from witter.middleware.request_id import RequestIDMiddleware, request_id_var
from witter.routes import account, health, profile, users, validate, weets

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, warn about development-only settings.
    Shutdown: dispose the database engine.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Witter API starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; a development secret is still a working secret
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Witter API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "status": status,
            "error": error,
            "message": message,
            "request_id": request_id_var.get(""),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        DatabaseError           → 500, generic message (details logged only)
        WitterError (and kids)  → the subclass's status_code and message
        RequestValidationError  → 400 (malformed body or path parameter)
        HTTPException           → its own status (e.g. 404 for unknown routes)
        Exception (fallback)    → 500
    """

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(WitterError)
    async def handle_witter_error(request: Request, exc: WitterError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        )
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), problems)
        return _error_response(400, "validation_error", f"Invalid request. {problems}".strip())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, "http_error", str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into a FastAPI app."""
    app = FastAPI(
        title="Witter API",
        description=(
            "REST backend for a microblogging service: accounts, profiles, follows, "
            "weets, and reweet/favorite/tab reactions."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(account.router)
    app.include_router(profile.router)
    app.include_router(users.router)
    app.include_router(weets.router)
    app.include_router(validate.router)
    app.include_router(health.router)

    return app


app = create_app()
