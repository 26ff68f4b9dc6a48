"""Tests for fsassets.storage.extensions module."""

import pytest

from fsassets.storage.extensions import AllowListExtensionService, normalize_extension


@pytest.mark.fast
class TestNormalizeExtension:
    """Tests for normalize_extension()."""

    @pytest.mark.parametrize(
        "value, expected",
        [("PNG", ".png"), (".Jpg", ".jpg"), (" txt ", ".txt"), ("", "")],
    )
    def test_normalize(self, value, expected):
        assert normalize_extension(value) == expected


@pytest.mark.fast
class TestAllowListExtensionService:
    """Tests for AllowListExtensionService."""

    @pytest.mark.asyncio
    async def test_default_allows_everything(self):
        service = AllowListExtensionService()
        assert await service.is_extension_allowed("/srv/assets/a.exe") is True
        assert await service.is_extension_allowed("/srv/assets/no-extension") is True

    @pytest.mark.asyncio
    async def test_blocked_extension(self):
        service = AllowListExtensionService(blocked_extensions=["exe", ".BAT"])
        assert await service.is_extension_allowed("setup.EXE") is False
        assert await service.is_extension_allowed("run.bat") is False
        assert await service.is_extension_allowed("image.png") is True

    @pytest.mark.asyncio
    async def test_allow_list_restricts(self):
        service = AllowListExtensionService(allowed_extensions=[".png", "jpg"])
        assert await service.is_extension_allowed("a.PNG") is True
        assert await service.is_extension_allowed("a.jpg") is True
        assert await service.is_extension_allowed("a.pdf") is False
        assert await service.is_extension_allowed("no-extension") is False

    @pytest.mark.asyncio
    async def test_block_list_wins(self):
        service = AllowListExtensionService(allowed_extensions=["png"], blocked_extensions=["png"])
        assert await service.is_extension_allowed("a.png") is False
