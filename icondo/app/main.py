"""
FastAPI Application Entry Point.

This is the main application file for the iCondo Parcel Service.
"""

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from icondo.app.core.config import settings
from icondo.app.api.v1.router import router as api_v1_router
from icondo.app.db.session import engine, Base
from icondo.app.core.observability import ObservabilityMiddleware, configure_logging
from icondo.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    storage_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from icondo.app.models.user import User
from icondo.app.models.parcel import Parcel

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup and disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel intake and QR pickup tracking for condominium front desks",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Stored photos are served read-only
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(settings.uploads_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the iCondo Parcel Service API",
        "docs": "/docs",
        "health": "/health",
    }
