"""
FastAPI Application Factory

Creates and configures the API application. The lifespan owns the
process-wide resources (database handle, optional Redis client) and hands
them to the analytics façade; nothing is reached through module globals.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from src.analytics import (
    AnalyticsEngine,
    AnalyticsService,
    MalformedLineItems,
    QueryValidationError,
    StoreFailure,
)
from src.config import Settings, configure_logging, get_settings
from src.database import Database
from src.serving.api.graphql import create_graphql_router
from src.serving.api.middleware import RequestLoggingMiddleware
from src.serving.api.routes import analytics_router, health_router
from src.serving.cache import CacheManager, close_redis, create_redis

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(settings)

    logger.info("Starting Sales Analytics API", environment=settings.app_env)

    database = Database.from_settings(settings.database)
    try:
        await database.connect()
    except Exception as e:
        logger.warning("Database init failed, queries will report store failures", error=str(e))

    redis = None
    cache = None
    if settings.cache.enabled:
        try:
            redis = await create_redis(settings.cache)
            cache = CacheManager(redis, "analytics", default_ttl=settings.cache.default_ttl)
        except Exception as e:
            logger.warning("Redis init failed, serving uncached", error=str(e))

    app.state.database = database
    app.state.redis = redis
    app.state.analytics_service = AnalyticsService(AnalyticsEngine(database), cache=cache)

    try:
        yield
    finally:
        logger.info("Shutting down...")
        await close_redis(redis)
        await database.close()


def register_exception_handlers(app: FastAPI) -> None:
    """Map analytics errors onto HTTP status codes."""

    @app.exception_handler(QueryValidationError)
    async def handle_validation_error(request: Request, exc: QueryValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": exc.message, "field": exc.field})

    @app.exception_handler(MalformedLineItems)
    async def handle_malformed_line_items(request: Request, exc: MalformedLineItems) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": exc.message, "orderId": str(exc.order_id)})

    @app.exception_handler(StoreFailure)
    async def handle_store_failure(request: Request, exc: StoreFailure) -> JSONResponse:
        return JSONResponse(status_code=503, content={"error": exc.message})


def create_api_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to run with (defaults to cached environment settings)

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Sales Analytics API",
        description="Customer spending, top sellers and sales analytics over orders",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(
        create_graphql_router(graphiql=not settings.is_production),
        prefix="/graphql",
        tags=["GraphQL"],
    )

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Sales Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "graphql": "/graphql",
        }

    return app
