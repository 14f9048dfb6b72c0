"""Unit tests for employees/photos.py -- asset host and upload helpers.

No network: CloudinaryAssetHost is exercised by patching
cloudinary.uploader.upload.
"""

from __future__ import annotations

import cloudinary.uploader
import pytest
from cloudinary.exceptions import Error as CloudinaryError

from core.errors import InvalidInput, UploadError
from employees.photos import (
    AssetHostError,
    CloudinaryAssetHost,
    UnconfiguredAssetHost,
    is_inline_image,
    resolve_photo,
    to_data_uri,
    upload_image,
)

MB = 1024 * 1024


@pytest.fixture
def host() -> CloudinaryAssetHost:
    return CloudinaryAssetHost("demo", "key123", "shh", "employee_photos", timeout=5)


class TestInlineDetection:
    def test_data_uri_is_inline(self):
        assert is_inline_image("data:image/png;base64,AAAA")

    def test_urls_and_none_are_not(self):
        assert not is_inline_image("https://example.test/a.png")
        assert not is_inline_image(None)
        assert not is_inline_image("data:text/plain;base64,AAAA")

    def test_to_data_uri(self):
        assert to_data_uri("image/png", b"\x00\x01") == "data:image/png;base64,AAE="


class TestCloudinaryAssetHost:
    def test_upload_passes_folder_and_credentials(self, host, monkeypatch):
        captured = {}

        def fake_upload(file, **options):
            captured.update(file=file, options=options)
            return {"secure_url": "https://res.example/x.png", "public_id": "employee_photos/x"}

        monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
        hosted = host.store("data:image/png;base64,AAAA")

        assert hosted.url == "https://res.example/x.png"
        assert hosted.asset_id == "employee_photos/x"
        assert captured["file"] == "data:image/png;base64,AAAA"
        options = captured["options"]
        assert options["folder"] == "employee_photos"
        assert options["resource_type"] == "image"
        assert options["cloud_name"] == "demo"
        assert options["api_key"] == "key123"
        assert options["api_secret"] == "shh"
        assert options["timeout"] == 5

    def test_sdk_error_becomes_asset_host_error(self, host, monkeypatch):
        def boom(file, **options):
            raise CloudinaryError("Invalid image file")

        monkeypatch.setattr(cloudinary.uploader, "upload", boom)
        with pytest.raises(AssetHostError, match="Invalid image file"):
            host.store("data:image/png;base64,AAAA")

    def test_missing_secure_url(self, host, monkeypatch):
        monkeypatch.setattr(cloudinary.uploader, "upload", lambda file, **options: {"public_id": "x"})
        with pytest.raises(AssetHostError, match="secure_url"):
            host.store("data:image/png;base64,AAAA")

    def test_unconfigured_host_always_fails(self):
        with pytest.raises(AssetHostError, match="not configured"):
            UnconfiguredAssetHost().store("data:image/png;base64,AAAA")


class TestResolvePhoto:
    @pytest.mark.asyncio
    async def test_url_passes_through(self, asset_host):
        assert await resolve_photo(asset_host, "https://x.test/a.png") == "https://x.test/a.png"
        assert asset_host.uploads == []

    @pytest.mark.asyncio
    async def test_empty_becomes_none(self, asset_host):
        assert await resolve_photo(asset_host, "") is None
        assert await resolve_photo(asset_host, None) is None

    @pytest.mark.asyncio
    async def test_inline_is_uploaded(self, asset_host):
        url = await resolve_photo(asset_host, "data:image/png;base64,AAAA")
        assert url == "https://assets.example.test/employee_photos/photo1.png"

    @pytest.mark.asyncio
    async def test_host_failure_is_upload_error(self, asset_host):
        asset_host.fail = True
        with pytest.raises(UploadError, match="Cloudinary upload failed"):
            await resolve_photo(asset_host, "data:image/png;base64,AAAA")


class TestUploadImage:
    @pytest.mark.asyncio
    async def test_image_is_uploaded_as_data_uri(self, asset_host):
        hosted = await upload_image(asset_host, "image/png", b"\x89PNG", 5 * MB)
        assert hosted.asset_id == "employee_photos/photo1"
        assert asset_host.uploads[0].startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_missing_file(self, asset_host):
        with pytest.raises(InvalidInput, match="No file uploaded"):
            await upload_image(asset_host, None, None, 5 * MB)

    @pytest.mark.asyncio
    async def test_non_image_rejected(self, asset_host):
        with pytest.raises(InvalidInput, match="Only image files"):
            await upload_image(asset_host, "text/plain", b"hello", 5 * MB)
        assert asset_host.uploads == []

    @pytest.mark.asyncio
    async def test_oversized_rejected(self, asset_host):
        with pytest.raises(InvalidInput, match="5 MB or smaller"):
            await upload_image(asset_host, "image/jpeg", b"x" * (5 * MB + 1), 5 * MB)
