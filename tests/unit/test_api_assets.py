"""Unit tests for the asset API.

Tests for fsassets/api/v1/assets.py and the error mapping in fsassets/main.py.

Run with:
    pytest tests/unit/test_api_assets.py -v
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from fsassets.config import Settings
from fsassets.main import create_app

PUBLIC_URL = "https://localhost:5001/assets"


@pytest.fixture
def client(test_settings):
    """Test client with the lifespan running."""
    with TestClient(create_app(test_settings)) as client:
        yield client


def _write(root, relative: str, data: bytes = b"content"):
    path = root.joinpath(*relative.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.mark.fast
class TestHealth:
    """Tests for health and root endpoints."""

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage"] is True
        assert data["provider"] == "FileSystem"

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Filesystem Assets"


@pytest.mark.fast
class TestContentEndpoints:
    """Tests for upload, download and info."""

    def test_upload_then_download(self, client, storage_root):
        response = client.put("/api/v1/assets/content", params={"url": "catalog/a.txt"}, content=b"hello")

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "blob"
        assert data["name"] == "a.txt"
        assert data["size"] == 5
        assert data["url"] == f"{PUBLIC_URL}/catalog/a.txt"
        assert (storage_root / "catalog" / "a.txt").read_bytes() == b"hello"

        response = client.get("/api/v1/assets/content", params={"url": "catalog/a.txt"})

        assert response.status_code == 200
        assert response.content == b"hello"
        assert response.headers["content-type"].startswith("text/plain")

    def test_upload_is_written_chunk_by_chunk(self, client, storage_root):
        chunks = [b"a" * 70_000, b"b" * 70_000, b"c"]

        with patch("starlette.requests.Request.body", side_effect=AssertionError("body buffered")):
            response = client.put(
                "/api/v1/assets/content", params={"url": "big.bin"}, content=iter(chunks)
            )

        assert response.status_code == 201
        assert response.json()["size"] == 140_001
        assert (storage_root / "big.bin").read_bytes() == b"".join(chunks)

    def test_info(self, client, storage_root):
        _write(storage_root, "catalog/epson printer.txt", b"ink")

        response = client.get("/api/v1/assets/info", params={"url": "/catalog/epson%20printer.txt"})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "epson printer.txt"
        assert data["relative_url"] == "/catalog/epson%20printer.txt"
        assert data["content_type"] == "text/plain"

    def test_info_missing(self, client):
        response = client.get("/api/v1/assets/info", params={"url": "missing.txt"})
        assert response.status_code == 404
        assert response.json() == {"error": "Blob not found: missing.txt", "detail": "BlobNotFoundError"}

    def test_download_missing(self, client):
        response = client.get("/api/v1/assets/content", params={"url": "missing.txt"})
        assert response.status_code == 404

    def test_missing_query_parameter(self, client):
        response = client.get("/api/v1/assets/info")
        assert response.status_code == 422


@pytest.mark.fast
class TestSearchEndpoint:
    """Tests for listing and searching."""

    def test_list_root(self, client, storage_root):
        _write(storage_root, "a.txt")
        (storage_root / "catalog").mkdir()

        response = client.get("/api/v1/assets")

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 2
        assert [entry["type"] for entry in data["results"]] == ["folder", "blob"]

    def test_search_keyword(self, client, storage_root):
        _write(storage_root, "catalog/151349/epson printer.txt")
        _write(storage_root, "catalog/readme.txt")

        response = client.get("/api/v1/assets", params={"folder_url": "catalog", "keyword": "printer"})

        data = response.json()
        assert [entry["name"] for entry in data["results"]] == ["epson printer.txt"]

    def test_absent_folder(self, client):
        response = client.get("/api/v1/assets", params={"folder_url": "nope"})
        assert response.status_code == 200
        assert response.json() == {"results": [], "total_count": 0}


@pytest.mark.fast
class TestManagementEndpoints:
    """Tests for folder creation, removal, move and copy."""

    def test_create_folder(self, client, storage_root):
        response = client.post("/api/v1/assets/folders", json={"name": "catalog"})
        assert response.status_code == 201
        assert response.json()["name"] == "catalog"
        assert (storage_root / "catalog").is_dir()

    def test_create_folder_requires_name(self, client):
        response = client.post("/api/v1/assets/folders", json={"name": ""})
        assert response.status_code == 422

    def test_remove(self, client, storage_root):
        _write(storage_root, "a.txt")
        _write(storage_root, "catalog/b.txt")

        response = client.delete("/api/v1/assets", params={"urls": ["a.txt", "catalog"]})

        assert response.status_code == 204
        assert not (storage_root / "a.txt").exists()
        assert not (storage_root / "catalog").exists()

    def test_move(self, client, storage_root):
        _write(storage_root, "a.txt")
        _write(storage_root, "c.txt")

        response = client.post("/api/v1/assets/move", json={"src_url": "a.txt", "dest_url": "b.txt"})
        assert response.status_code == 200
        assert response.json() == {"moved": True}

        response = client.post("/api/v1/assets/move", json={"src_url": "b.txt", "dest_url": "c.txt"})
        assert response.json() == {"moved": False}

    def test_copy(self, client, storage_root):
        _write(storage_root, "catalog/a.txt", b"a")

        response = client.post("/api/v1/assets/copy", json={"src_url": "catalog", "dest_url": "backup"})

        assert response.status_code == 204
        assert (storage_root / "backup" / "a.txt").read_bytes() == b"a"

    def test_absolute_url(self, client):
        response = client.get("/api/v1/assets/absolute-url", params={"url": "catalog/epson printer.txt"})
        assert response.json() == {"url": f"{PUBLIC_URL}/catalog/epson%20printer.txt"}


@pytest.mark.fast
class TestErrorMapping:
    """Storage errors map to HTTP status codes."""

    def test_invalid_argument_is_bad_request(self, client):
        response = client.get("/api/v1/assets/info", params={"url": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == "InvalidArgumentError"

    def test_path_violation_is_forbidden(self, client):
        response = client.get("/api/v1/assets/info", params={"url": "../outside.txt"})
        assert response.status_code == 403
        assert response.json()["error"].startswith("Invalid path")

    def test_missing_copy_source_is_not_found(self, client):
        response = client.post("/api/v1/assets/copy", json={"src_url": "nope", "dest_url": "backup"})
        assert response.status_code == 404

    def test_blocked_extension_is_unsupported_media_type(self, storage_root):
        settings = Settings(
            ASSETS_FILESYSTEM_ROOT_PATH=str(storage_root),
            ASSETS_FILESYSTEM_PUBLIC_URL=PUBLIC_URL,
            ASSETS_BLOCKED_EXTENSIONS="exe",
        )
        with TestClient(create_app(settings)) as client:
            response = client.put("/api/v1/assets/content", params={"url": "setup.exe"}, content=b"MZ")

        assert response.status_code == 415
        assert "not allowed" in response.json()["error"]
        assert not (storage_root / "setup.exe").exists()

    def test_unconfigured_provider_is_unavailable(self, storage_root):
        settings = Settings(ASSETS_PROVIDER="AzureBlob", ASSETS_FILESYSTEM_ROOT_PATH=str(storage_root))
        with TestClient(create_app(settings)) as client:
            response = client.get("/api/v1/assets")
            health = client.get("/health")

        assert response.status_code == 503
        assert response.json() == {"error": "Blob storage provider is not configured", "detail": None}
        assert health.json()["status"] == "degraded"
