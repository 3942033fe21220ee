"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import (ConcurrentUpdateError, EventNotFoundError, EventValidationError,
                                 NoOpenSessionError, OverlapDetectedError, SessionAlreadyOpenError, TrackerError,
                                 TransactionError, )
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)

# Most specific class first
_STATUS_BY_ERROR: list[tuple[type[TrackerError], int]] = [
    (EventValidationError, status.HTTP_400_BAD_REQUEST),
    (SessionAlreadyOpenError, status.HTTP_400_BAD_REQUEST),
    (NoOpenSessionError, status.HTTP_400_BAD_REQUEST),
    (OverlapDetectedError, status.HTTP_409_CONFLICT),
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT),
    (EventNotFoundError, status.HTTP_404_NOT_FOUND),
    (TransactionError, status.HTTP_503_SERVICE_UNAVAILABLE),
]

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.INIT_DB_ON_STARTUP:
        from app.db.init_db import init_db

        init_db()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Care event logging with sleep session tracking.",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    """Map domain errors to JSON responses."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_class, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            status_code = code
            break
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code,
                        content={ "error": exc.message, "code": exc.code, "details": exc.details })


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "message": "Baby Tracker API",
        "version": settings.VERSION,
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "baby-tracker-api",
        "version": settings.VERSION
    }


@app.get("/info")
async def info():
    return {
        "project name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "project url": settings.PROJECT_URL,
        "caregivers": settings.ALLOWED_USERS
    }
