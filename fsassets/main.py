"""FastAPI application for the asset service.

This module provides the FastAPI application factory with health endpoints,
API routes, storage error mapping and lifecycle management.

Run with:
    uvicorn fsassets.main:app --reload

Examples:
    >>> # Health check
    >>> curl http://localhost:8000/health

    >>> # List the storage root
    >>> curl http://localhost:8000/api/v1/assets

Tests:
    - tests/unit/test_api_assets.py::TestHealth::test_health_endpoint
    - tests/unit/test_api_assets.py::TestErrorMapping
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fsassets import __version__
from fsassets.api.v1 import router as v1_router
from fsassets.config import Settings, get_settings
from fsassets.storage import (
    BlobNotFoundError,
    BlobStorageError,
    ExtensionNotAllowedError,
    FileSystemBlobProvider,
    InvalidArgumentError,
    PathViolationError,
)

logger = logging.getLogger(__name__)

# most specific first; subclasses of these map to the same status
STORAGE_ERROR_STATUS: list[tuple[type[BlobStorageError], int]] = [
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (PathViolationError, status.HTTP_403_FORBIDDEN),
    (BlobNotFoundError, status.HTTP_404_NOT_FOUND),
    (ExtensionNotAllowedError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
]


# Response models
class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    provider: str
    storage: bool


def storage_error_status(exc: BlobStorageError) -> int:
    """Map a storage error to its HTTP status code."""
    for error_type, status_code in STORAGE_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use; the cached environment settings by default.

    Returns:
        FastAPI: Configured application. The blob provider is created on
        startup and stored as ``app.state.blob_provider``.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager.

        Builds the blob provider on startup and drops it on shutdown.
        """
        logger.info(f"Starting asset service v{__version__}")

        if settings.is_filesystem_provider:
            app.state.blob_provider = FileSystemBlobProvider.from_settings(settings)
            logger.info(
                f"Filesystem provider ready: root={app.state.blob_provider.storage_root} "
                f"public_url={app.state.blob_provider.public_url}"
            )
        else:
            app.state.blob_provider = None
            logger.warning(f"Unsupported blob provider: {settings.ASSETS_PROVIDER}")

        yield

        logger.info("Shutting down asset service")
        app.state.blob_provider = None

    app = FastAPI(
        title="Filesystem Assets",
        description="Blob storage over a local directory",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router)

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc: HTTPException):
        """Handle HTTP exceptions with consistent response format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "detail": None},
        )

    @app.exception_handler(BlobStorageError)
    async def storage_exception_handler(request, exc: BlobStorageError):
        """Map storage errors to client error responses."""
        status_code = storage_error_status(exc)
        logger.info(f"Storage error ({status_code}): {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": str(exc), "detail": type(exc).__name__},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception(f"Unexpected error: {exc}")

        if settings.DEBUG:
            detail = str(exc)
        else:
            detail = None

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "detail": detail},
        )

    # Health endpoints
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Check application health.

        Storage is healthy when a provider is configured and its root is a
        directory.

        Returns:
            HealthResponse with status information.
        """
        provider = getattr(app.state, "blob_provider", None)
        storage_healthy = provider is not None and os.path.isdir(provider.storage_root)

        return HealthResponse(
            status="healthy" if storage_healthy else "degraded",
            version=__version__,
            provider=settings.ASSETS_PROVIDER,
            storage=storage_healthy,
        )

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Root endpoint with basic info.

        Returns:
            Basic application information.
        """
        return {
            "name": "Filesystem Assets",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


# Entry point for development
if __name__ == "__main__":
    import uvicorn

    dev_settings = get_settings()
    uvicorn.run(
        "fsassets.main:app",
        host="0.0.0.0",
        port=8000,
        reload=dev_settings.DEBUG,
    )
