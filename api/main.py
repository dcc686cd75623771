"""
FastAPI application initialization
"""

from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from api.middleware import RequestContextMiddleware
from api.routes import health, usage
from api.routes import ingestion as ingestion_routes
from core.config import settings
from core.database import async_session_maker, dispose_engine
from core.exceptions import IngestionException, PersistenceError, QuotaExceededError
from core.logging import setup_logging
from ingestion.provider.client import FootballApiClient
from ingestion.scheduler import IngestionScheduler
from ingestion.services.base import ServiceContext
from schemas.api import ErrorResponse
from storage.postgres import PostgresStore
import logging

logger = logging.getLogger(__name__)


def build_context() -> ServiceContext:
    """Production wiring: PostgreSQL store and the live API-Football client"""
    client = FootballApiClient(
        base_url=settings.FOOTBALL_API_BASE_URL,
        api_key=settings.FOOTBALL_API_KEY,
        timeout=settings.FOOTBALL_API_TIMEOUT,
    )
    return ServiceContext(PostgresStore(async_session_maker), client, settings)


def error_status(error: IngestionException) -> int:
    if isinstance(error, QuotaExceededError):
        return 429
    if isinstance(error, PersistenceError):
        return 503
    return 500


def create_app(
    ctx: Optional[ServiceContext] = None,
    scheduler: Optional[IngestionScheduler] = None
) -> FastAPI:
    app = FastAPI(
        title="Football Ingestion Backend API",
        description="Ingests API-Football data and exposes ingestion triggers, status and usage",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.add_middleware(RequestContextMiddleware)

    app.state.ctx = ctx
    app.state.scheduler = scheduler

    @app.exception_handler(IngestionException)
    async def ingestion_exception_handler(request: Request, exc: IngestionException):
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"[{request_id}] {exc}")
        body = ErrorResponse(error=exc.error_type, detail=exc.message)
        return JSONResponse(status_code=error_status(exc), content=body.model_dump(mode="json"))

    app.include_router(health.router)
    app.include_router(ingestion_routes.router)
    app.include_router(usage.router)

    @app.on_event("startup")
    async def startup_event():
        """Application startup event"""
        logger.info("Starting Football Ingestion Backend API")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

        if app.state.ctx is None:
            logger.info(
                f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}"
            )
            app.state.ctx = build_context()
        if app.state.scheduler is None:
            app.state.scheduler = IngestionScheduler(app.state.ctx)

        app.state.scheduler.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Application shutdown event"""
        logger.info("Shutting down Football Ingestion Backend API")
        app.state.scheduler.stop()
        await app.state.ctx.client.aclose()
        if isinstance(app.state.ctx.store, PostgresStore):
            await dispose_engine()

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Football Ingestion Backend API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "ingestion": "/ingestion",
                "leagues": "/leagues",
                "usage": "/usage"
            }
        }

    return app


setup_logging()
app = create_app()
