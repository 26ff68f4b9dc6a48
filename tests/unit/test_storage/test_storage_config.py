"""Tests for fsassets.storage.config module."""

import os

import pytest
from pydantic import ValidationError

from fsassets.storage.config import StorageConfig


@pytest.mark.fast
class TestStorageConfig:
    """Tests for StorageConfig validation."""

    def test_valid_config(self, tmp_path):
        config = StorageConfig(root_path=str(tmp_path), public_url="https://localhost:5001/assets/")
        assert config.root_path == str(tmp_path)
        assert config.public_url == "https://localhost:5001/assets"
        assert config.read_retry_count == 3
        assert config.read_retry_delay_ms == 50

    def test_relative_root_made_absolute(self):
        config = StorageConfig(root_path="./assets", public_url="http://localhost:8000/assets")
        assert config.root_path == os.path.abspath("assets")

    def test_backslash_root_normalized(self):
        config = StorageConfig(root_path="/srv\\assets", public_url="http://localhost:8000/assets")
        assert config.root_path == os.path.join(os.sep, "srv", "assets")

    @pytest.mark.parametrize("url", ["http://host/assets", "https://host:5001", "ftp://files.example.com/pub"])
    def test_accepted_public_url_schemes(self, tmp_path, url):
        assert StorageConfig(root_path=str(tmp_path), public_url=url).public_url == url

    @pytest.mark.parametrize("url", ["wrong url", "/assets", "file:///srv/assets", "mailto:a@b.c", ""])
    def test_rejected_public_url(self, tmp_path, url):
        with pytest.raises(ValidationError, match="not a valid fully-qualified http, https, or ftp URL"):
            StorageConfig(root_path=str(tmp_path), public_url=url)

    def test_both_fields_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            StorageConfig(root_path="  ", public_url="wrong url")

        errors = exc_info.value.errors()
        assert {error["loc"][0] for error in errors} == {"root_path", "public_url"}
        assert "The root_path field is required." in str(exc_info.value)

    def test_missing_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            StorageConfig()
        assert len(exc_info.value.errors()) == 2

    @pytest.mark.parametrize("count", [-1, 11])
    def test_retry_count_bounds(self, tmp_path, count):
        with pytest.raises(ValidationError):
            StorageConfig(root_path=str(tmp_path), public_url="http://h/a", read_retry_count=count)
