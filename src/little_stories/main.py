# src/little_stories/main.py
"""Main entry point for the Little Stories application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from little_stories.api.v1 import (
    auth_router,
    profile_router,
    ratings_router,
    session_router,
    stories_router,
)
from little_stories.core.logging_config import setup_logging
from little_stories.core.settings import settings
from little_stories.services.auth_provider import get_auth_provider

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

DESCRIPTION = "Short stories by authors and guests, rated by readers"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=DESCRIPTION,
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(stories_router, prefix="/api/v1")
app.include_router(ratings_router, prefix="/api/v1")
app.include_router(profile_router, prefix="/api/v1")
app.include_router(session_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    logger.info("%s %s starting", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_auth_provider().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": DESCRIPTION,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("little_stories.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
