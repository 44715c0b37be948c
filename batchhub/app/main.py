"""
FastAPI Application Entry Point.

Student community backend: identity, communities, events and shared expenses.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from batchhub.app.core.config import settings
from batchhub.app.core.logging_config import configure_logging
from batchhub.app.core.observability import ObservabilityMiddleware
from batchhub.app.core.redis_client import ping_redis
from batchhub.app.api.v1.router import router as api_v1_router
from batchhub.app.db.session import init_models
from batchhub.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup."""
    await init_models()
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Backend for student communities: events and shared expense splitting",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe, with Redis reachability."""
    return {
        "status": "healthy",
        "redis": "up" if await ping_redis() else "down",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the BatchHub API",
        "docs": "/docs",
        "health": "/health",
    }
