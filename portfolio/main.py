"""
Portfolio web server

Entry point for the FastAPI application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from portfolio.api import router as html_router
from portfolio.core.config import Settings, get_settings
from portfolio.core.database import Database
from portfolio.core.errors import register_exception_handlers
from portfolio.core.logging import configure_logging
from portfolio.core.middleware import (
    MethodOverrideMiddleware,
    RequestLogMiddleware,
    SecurityHeadersMiddleware,
)
from portfolio.core.oauth import GoogleIdentityProvider, IdentityProvider
from portfolio.core.session import (
    MemorySessionStore,
    RedisSessionStore,
    ServerSessionMiddleware,
    SessionStore,
)
from portfolio.services.projects import ProjectRepository

log = structlog.get_logger()

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _build_session_store(settings: Settings) -> SessionStore:
    if settings.redis_url:
        return RedisSessionStore.from_url(settings.redis_url)
    return MemorySessionStore()


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    projects: Optional[ProjectRepository] = None,
    session_store: Optional[SessionStore] = None,
    identity_provider: Optional[IdentityProvider] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Process-wide resources are built here once and handed to request
    handlers through `app.state`; callers may pass their own (tests do).
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    if database is None:
        database = Database(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
        )
    if projects is None:
        projects = ProjectRepository(database)
    if session_store is None:
        session_store = _build_session_store(settings)
    if identity_provider is None:
        identity_provider = GoogleIdentityProvider(
            settings.google_client_id, settings.google_client_secret
        )

    app = FastAPI(
        title="Portfolio",
        description="Portfolio site with Google sign-in and project management.",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.projects = projects
    app.state.session_store = session_store
    app.state.identity_provider = identity_provider

    # Middleware: the last one added runs outermost
    app.add_middleware(
        ServerSessionMiddleware,
        store=session_store,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age_seconds,
        https_only=settings.session_cookie_secure,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(MethodOverrideMiddleware)

    register_exception_handlers(app)

    if STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    app.include_router(html_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint: the data store must answer."""
        try:
            await database.ping()
        except Exception as exc:
            log.warning("ready.store_unavailable", error=exc.__class__.__name__)
            return JSONResponse({"status": "unavailable"}, status_code=503)
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        if settings.uses_default_secret:
            log.warning("config.default_session_secret")
        if settings.auto_create_tables:
            await database.create_all()
        log.info(
            "Server running", url=f"http://localhost:{settings.port}", port=settings.port
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Portfolio shutting down")
        await session_store.close()
        await database.dispose()

    return app


def run() -> None:
    """CLI entry point: serve the app on HOST:PORT."""
    settings = get_settings()
    uvicorn.run(
        "portfolio.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


app = create_app()
