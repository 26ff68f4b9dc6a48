"""FastAPI dependencies for the asset routes."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from fsassets.storage import FileSystemBlobProvider


async def get_blob_provider(request: Request) -> FileSystemBlobProvider:
    """Return the blob provider built at startup.

    Raises:
        HTTPException 503: If no provider is configured for this application.
    """
    provider = getattr(request.app.state, "blob_provider", None)
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Blob storage provider is not configured",
        )
    return provider
