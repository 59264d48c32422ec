# src/berth_board/main.py
"""Main entry point for the Berth Board application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from berth_board.api.v1 import posts_router
from berth_board.core.settings import settings

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Berth Board API",
    description="Community posts with ordered image attachments",
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
app.include_router(posts_router, prefix="/api/v1")

# Persisted references are "{prefix}/{post_id}/{file}", so serving the storage
# root under its own name makes every reference a fetchable URL path.
app.mount(
    f"/{settings.attachment_prefix}",
    StaticFiles(directory=settings.storage_root, check_dir=False),
    name="attachments",
)


@app.on_event("startup")
async def on_startup() -> None:
    settings.storage_root.mkdir(parents=True, exist_ok=True)
    logger.info("Serving attachments from %s", settings.storage_root.resolve())


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Berth Board API",
        "version": settings.app_version,
        "description": "Community posts with ordered image attachments",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("berth_board.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
