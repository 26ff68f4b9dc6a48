"""
Pytest configuration and fixtures for Filesystem Assets tests.

Every test gets its own storage root under pytest's tmp_path, so tests never
share files and need no cleanup.
"""
import logging
from unittest.mock import AsyncMock

import pytest

from fsassets.config import Settings
from fsassets.storage import (
    EventPublisher,
    FileExtensionService,
    FileSystemBlobProvider,
    StorageConfig,
)

logger = logging.getLogger(__name__)

PUBLIC_URL = "https://localhost:5001/assets"


# ============================================
# Storage Fixtures
# ============================================

@pytest.fixture
def storage_root(tmp_path):
    """Empty storage root directory."""
    root = tmp_path / "assets"
    root.mkdir()
    return root


@pytest.fixture
def storage_config(storage_root) -> StorageConfig:
    """Storage config pointing at the test root with fast retries."""
    return StorageConfig(
        root_path=str(storage_root),
        public_url=PUBLIC_URL,
        read_retry_delay_ms=1,
    )


@pytest.fixture
def extension_service():
    """Extension policy that allows everything unless a test says otherwise."""
    service = AsyncMock(spec=FileExtensionService)
    service.is_extension_allowed.return_value = True
    return service


@pytest.fixture
def event_publisher():
    """Recording event publisher."""
    return AsyncMock(spec=EventPublisher)


@pytest.fixture
def provider(storage_config, extension_service, event_publisher) -> FileSystemBlobProvider:
    """Filesystem provider over the test root."""
    return FileSystemBlobProvider(
        storage_config,
        extension_service=extension_service,
        event_publisher=event_publisher,
    )


@pytest.fixture
def test_settings(storage_root) -> Settings:
    """Application settings pointing at the test root."""
    return Settings(
        ASSETS_FILESYSTEM_ROOT_PATH=str(storage_root),
        ASSETS_FILESYSTEM_PUBLIC_URL=PUBLIC_URL,
        ASSETS_READ_RETRY_DELAY_MS=1,
        DEBUG=True,
    )


# ============================================
# Pytest Configuration
# ============================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "fast: Fast unit tests (no network, tmp_path filesystem only)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests (retry backoff, large trees)"
    )
