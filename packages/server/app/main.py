"""
Marketplace API Server

Entry point for the FastAPI application.
"""

from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.core.config import Settings, get_settings
from app.core.database import Database
from app.core.errors import register_exception_handlers
from app.core.middleware import SecurityHeadersMiddleware, UploadSizeLimitMiddleware
from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router

log = structlog.get_logger()


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Solver Marketplace",
        description="Buyers post projects, problem solvers deliver them task by task.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.db = db or Database.from_settings(settings)

    # Middleware (last added is outermost)
    app.add_middleware(UploadSizeLimitMiddleware, max_upload_bytes=settings.max_upload_bytes)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    # Auth routes
    app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])

    # API routes
    app.include_router(api_v1_router, prefix="/api")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint: the database answers a trivial query."""
        async with app.state.db.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        if settings.auto_create_tables:
            await app.state.db.create_all()
        log.info("Marketplace starting", environment=settings.environment)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Marketplace shutting down")
        await app.state.db.dispose()

    return app


app = create_app()
