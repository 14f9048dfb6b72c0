"""
employees/photos.py -- Asset-host capability for employee photos.

Services depend only on the AssetHost protocol: store(payload) -> HostedImage.
CloudinaryAssetHost is the production implementation; tests inject a fake.

An inline payload is any string starting with "data:image" (a base64 data
URI). Anything else -- an existing URL, None -- is passed through untouched.

Cloudinary is called through its SDK (cloudinary.uploader.upload) with the
credentials passed per call, so nothing is configured globally. The call is
blocking and runs on a worker thread (anyio.to_thread) so the event loop
keeps serving other requests. There is no retry: a failure surfaces at once
as UploadError and the calling operation aborts before persisting anything.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import cloudinary.uploader
from anyio import to_thread
from cloudinary.exceptions import Error as CloudinaryError

from core.errors import InvalidInput, UploadError

logger = logging.getLogger("staffdesk.assets")

INLINE_IMAGE_PREFIX = "data:image"


@dataclass(frozen=True)
class HostedImage:
    url: str
    asset_id: str


class AssetHostError(Exception):
    """The asset host could not store the image."""


class AssetHost(Protocol):
    def store(self, payload: str) -> HostedImage: ...


def is_inline_image(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.startswith(INLINE_IMAGE_PREFIX)


def to_data_uri(content_type: str, raw: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(raw).decode('ascii')}"


class CloudinaryAssetHost:
    """Uploads into one Cloudinary folder through the Cloudinary SDK."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str, timeout: float = 30) -> None:
        self._options: dict[str, Any] = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "folder": folder,
            "resource_type": "image",
            "timeout": timeout,
        }

    def store(self, payload: str) -> HostedImage:
        try:
            result = cloudinary.uploader.upload(payload, **self._options)
        except CloudinaryError as e:
            raise AssetHostError(str(e)) from e

        url = result.get("secure_url")
        if not url:
            raise AssetHostError("no secure_url in response")
        return HostedImage(url=url, asset_id=result.get("public_id", ""))


class UnconfiguredAssetHost:
    """Stand-in used when no Cloudinary credentials are set: every upload fails."""

    def store(self, payload: str) -> HostedImage:
        raise AssetHostError("image hosting is not configured")


async def store_image(host: AssetHost, payload: str) -> HostedImage:
    """Upload through the host, converting host failures to UploadError."""
    try:
        return await to_thread.run_sync(host.store, payload)
    except AssetHostError as exc:
        logger.warning("assets.upload_failed error=%s", exc)
        raise UploadError(f"Cloudinary upload failed: {exc}") from exc


async def resolve_photo(host: AssetHost, value: Optional[str]) -> Optional[str]:
    """Replace an inline image payload with its hosted URL; pass anything else through."""
    if not is_inline_image(value):
        return value or None
    hosted = await store_image(host, value)
    return hosted.url


async def upload_image(
    host: AssetHost, content_type: Optional[str], raw: Optional[bytes], max_bytes: int
) -> HostedImage:
    """Side-channel upload of a single image file (the /api/upload endpoint)."""
    if raw is None:
        raise InvalidInput("No file uploaded.")
    if not content_type or not content_type.startswith("image/"):
        raise InvalidInput("Only image files are allowed.")
    if len(raw) > max_bytes:
        raise InvalidInput(f"Image must be {max_bytes // (1024 * 1024)} MB or smaller.")
    return await store_image(host, to_data_uri(content_type, raw))
