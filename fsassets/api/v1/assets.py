"""Asset API endpoints.

Provides REST API over the blob provider. Every ``url`` parameter accepts an
absolute URL, a rooted relative URL or a bare relative path.

Endpoints:
    GET /api/v1/assets - List a folder or search it by keyword
    GET /api/v1/assets/info - Get blob info
    GET /api/v1/assets/content - Download blob content
    PUT /api/v1/assets/content - Upload blob content
    POST /api/v1/assets/folders - Create a folder
    DELETE /api/v1/assets - Remove folders and blobs
    POST /api/v1/assets/move - Move a folder or blob
    POST /api/v1/assets/copy - Copy a folder or blob
    GET /api/v1/assets/absolute-url - Normalize a URL to its absolute form

Examples:
    >>> # Upload a file
    >>> PUT /api/v1/assets/content?url=catalog/manual.pdf
    >>>
    >>> # Response
    >>> {"type": "blob", "name": "manual.pdf", "url": "http://localhost:8000/assets/catalog/manual.pdf", ...}

Tests:
    - tests/unit/test_api_assets.py::TestContentEndpoints::test_upload_then_download
    - tests/unit/test_api_assets.py::TestErrorMapping::test_path_violation_is_forbidden
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from typing import BinaryIO

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from fsassets.api.dependencies import get_blob_provider
from fsassets.storage import (
    BlobFolder,
    BlobInfo,
    BlobNotFoundError,
    BlobSearchResult,
    FileSystemBlobProvider,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])

CHUNK_SIZE = 64 * 1024


# Request/Response Models


class CreateFolderRequest(BaseModel):
    """Request to create a folder.

    Attributes:
        name: Folder name
        parent_url: Parent folder URL; the storage root when omitted
    """

    name: str = Field(..., min_length=1, description="Folder name")
    parent_url: str | None = Field(default=None, description="Parent folder URL")


class TransferRequest(BaseModel):
    """Source and destination of a move or copy."""

    src_url: str = Field(..., min_length=1, description="Source URL")
    dest_url: str = Field(..., min_length=1, description="Destination URL")


class MoveResponse(BaseModel):
    """Response after a move request."""

    moved: bool


class AbsoluteUrlResponse(BaseModel):
    """Normalized absolute URL."""

    url: str


def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    try:
        while chunk := stream.read(CHUNK_SIZE):
            yield chunk
    finally:
        stream.close()


# Endpoints


@router.get("", response_model=BlobSearchResult)
async def search_assets(
    folder_url: str | None = Query(default=None, description="Folder URL"),
    keyword: str | None = Query(default=None, description="Name fragment to search for"),
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> BlobSearchResult:
    """List a folder, or search it recursively when a keyword is given."""
    return await provider.search_async(folder_url, keyword)


@router.get("/info", response_model=BlobInfo)
async def get_asset_info(
    url: str = Query(..., description="Blob URL"),
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> BlobInfo:
    """Get blob info.

    Raises:
        BlobNotFoundError: If there is no file at the URL.
    """
    info = await provider.get_info_async(url)
    if info is None:
        raise BlobNotFoundError(url)
    return info


@router.get("/content")
async def download_asset(
    url: str = Query(..., description="Blob URL"),
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> StreamingResponse:
    """Stream blob content with its content type."""
    info = await provider.get_info_async(url)
    if info is None:
        raise BlobNotFoundError(url)

    stream = await provider.open_read_async(url)
    return StreamingResponse(
        _iter_stream(stream),
        media_type=info.content_type,
        headers={"Content-Length": str(info.size)},
    )


@router.put("/content", response_model=BlobInfo, status_code=status.HTTP_201_CREATED)
async def upload_asset(
    request: Request,
    url: str = Query(..., description="Blob URL"),
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> BlobInfo:
    """Create or replace a blob with the raw request body, chunk by chunk."""
    stream = await provider.open_write_async(url)
    written = 0
    try:
        async for chunk in request.stream():
            if chunk:
                await asyncio.to_thread(stream.write, chunk)
                written += len(chunk)
    finally:
        stream.close()

    logger.info(f"Blob uploaded: {url} ({written} bytes)")
    info = await provider.get_info_async(url)
    if info is None:
        raise BlobNotFoundError(url)
    return info


@router.post("/folders", response_model=BlobFolder, status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: CreateFolderRequest,
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> BlobFolder:
    """Create a folder. Succeeds when the folder already exists."""
    folder = BlobFolder(name=payload.name, parent_url=payload.parent_url)
    await provider.create_folder_async(folder)
    return folder


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_assets(
    urls: list[str] = Query(..., description="URLs of folders and blobs to remove"),
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> Response:
    """Remove folders and blobs."""
    await provider.remove_async(urls)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/move", response_model=MoveResponse)
async def move_asset(
    payload: TransferRequest,
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> MoveResponse:
    """Move a folder or blob. ``moved`` is false when nothing happened."""
    moved = await provider.move_async(payload.src_url, payload.dest_url)
    return MoveResponse(moved=moved)


@router.post("/copy", status_code=status.HTTP_204_NO_CONTENT)
async def copy_asset(
    payload: TransferRequest,
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> Response:
    """Copy a folder tree or a single blob."""
    await provider.copy_async(payload.src_url, payload.dest_url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/absolute-url", response_model=AbsoluteUrlResponse)
async def get_absolute_url(
    url: str = Query(..., description="URL in any accepted form"),
    provider: FileSystemBlobProvider = Depends(get_blob_provider),
) -> AbsoluteUrlResponse:
    """Normalize a URL to its escaped absolute form."""
    return AbsoluteUrlResponse(url=provider.normalize_to_absolute(url))
