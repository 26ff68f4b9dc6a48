"""Tests for fsassets.storage.streams module."""

import pytest

from fsassets.storage.streams import BlobUploadStream


@pytest.fixture
def stream(tmp_path):
    raw = open(tmp_path / "upload.bin", "wb")
    yield BlobUploadStream(raw, url="catalog/upload.bin", provider="FileSystem")
    raw.close()


@pytest.mark.fast
class TestBlobUploadStream:
    """Tests for BlobUploadStream."""

    def test_write_only(self, stream):
        assert stream.writable()
        assert not stream.readable()
        assert stream.seekable()

    def test_writes_reach_file(self, stream, tmp_path):
        with stream:
            assert stream.write(b"abc") == 3
            assert stream.tell() == 3
        assert (tmp_path / "upload.bin").read_bytes() == b"abc"

    def test_close_closes_file(self, stream):
        raw = stream._raw
        stream.close()
        assert stream.closed
        assert raw.closed

    def test_close_is_idempotent(self, stream):
        stream.close()
        stream.close()
        assert stream.closed

    def test_write_after_close_fails(self, stream):
        stream.close()
        with pytest.raises(ValueError):
            stream.write(b"late")

    def test_name_and_metadata(self, stream, tmp_path):
        assert stream.name == str(tmp_path / "upload.bin")
        assert stream.url == "catalog/upload.bin"
        assert stream.provider == "FileSystem"
