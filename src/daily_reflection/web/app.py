# ABOUTME: FastAPI application factory with store lifespan, CORS and error handlers.
# ABOUTME: Main entry point for the daily reflection backend.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from daily_reflection import __version__
from daily_reflection.config import Settings, get_settings
from daily_reflection.db.session import close_db, init_db
from daily_reflection.email.dispatcher import build_dispatcher
from daily_reflection.email.transport import HttpApiTransport
from daily_reflection.errors import ReflectionBlogError, Unauthorized
from daily_reflection.services.admin_sessions import AdminSessionManager
from daily_reflection.storage.json_file import JsonFileStore
from daily_reflection.web.routes import admin, api, pages, reflections, subscribe

logger = structlog.get_logger()

# Template paths
WEB_DIR = Path(__file__).parent
TEMPLATES_DIR = WEB_DIR / "templates"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context for store setup/teardown.

    A database that cannot be reached aborts startup.
    """
    settings: Settings = app.state.settings
    logger.info("app_startup", store_backend=settings.store_backend)
    if settings.store_backend == "sql":
        await init_db(settings)
    else:
        await app.state.json_store.initialize()
    yield
    logger.info("app_shutdown")
    if settings.store_backend == "sql":
        await close_db()
    transport = app.state.dispatcher.transport
    if isinstance(transport, HttpApiTransport):
        await transport.aclose()


async def handle_app_error(request: Request, exc: ReflectionBlogError) -> JSONResponse:
    """Map application errors to ``{"error": message}`` responses."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            error=exc.message,
            exc_info=exc,
        )
        return JSONResponse({"error": "Internal server error"}, status_code=exc.status_code)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse({"error": exc.message}, status_code=exc.status_code, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with a readable message."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        problems.append(f"{location}: {error.get('msg', 'invalid')}")
    logger.debug("request_validation_failed", path=request.url.path, problems=problems)
    return JSONResponse({"error": "; ".join(problems)}, status_code=400)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Reflexión del Día",
        description="Daily reflection blog with newsletter",
        version=__version__,
        lifespan=lifespan,
    )

    # Process-wide collaborators, created once and injected via app.state
    app.state.settings = settings
    app.state.sessions = AdminSessionManager(
        settings.admin_password,
        ttl=timedelta(hours=settings.session_ttl_hours),
    )
    app.state.dispatcher = build_dispatcher(settings)
    if settings.store_backend == "json":
        app.state.json_store = JsonFileStore(settings.data_file)

    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(ReflectionBlogError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    # Include routers
    app.include_router(api.router)
    app.include_router(reflections.router)
    app.include_router(subscribe.router)
    app.include_router(admin.router)
    app.include_router(pages.router)

    # Public site, mounted last so API routes take precedence
    if settings.web_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(settings.web_dir), html=True), name="web")
    else:
        logger.debug("web_dir_missing", path=str(settings.web_dir))

    return app
