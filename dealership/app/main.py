"""
FastAPI Application Entry Point.

This is the main application file for the Dealership Sales Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from dealership.app.core.config import settings
from dealership.app.api.v1.router import router as api_v1_router
from dealership.app.core.observability import ObservabilityMiddleware, configure_logging
from dealership.app.core.redis_client import ping_redis
from dealership.app.db.session import engine, Base
from dealership.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from dealership.app.models.user import User
from dealership.app.models.audit_log import AuditLog
from dealership.app.models.vehicle import Vehicle
from dealership.app.models.sale import Sale
from dealership.app.models.transaction import Transaction
from dealership.app.models.test_drive import TestDrive


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup."""
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Inventory, sales, payments and test drives for a vehicle dealership",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    redis_ok = await ping_redis()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if redis_ok else "down",
    }


app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Dealership Sales Backend API",
        "docs": "/docs",
        "health": "/health",
    }
