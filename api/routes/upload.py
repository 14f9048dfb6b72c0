"""
api/routes/upload.py -- Side-channel image upload endpoint.

  POST /api/upload  -- multipart/form-data with a single "photo" file

Independent of the /api/v1 operation set and unauthenticated. The file is
size-capped (5 MB by default), must carry an image/* content type, and is
forwarded to the asset host as a base64 data URI.
"""

from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile

from api.models import UploadResponse
from employees.photos import upload_image

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload(request: Request, photo: Optional[UploadFile] = File(default=None)) -> UploadResponse:
    max_bytes: int = request.app.state.max_upload_bytes
    raw: Optional[bytes] = None
    content_type: Optional[str] = None
    if photo is not None:
        # Read up to the limit + 1 byte; upload_image rejects anything longer.
        raw = await photo.read(max_bytes + 1)
        content_type = photo.content_type
    hosted = await upload_image(request.app.state.asset_host, content_type, raw, max_bytes)
    return UploadResponse(url=hosted.url, asset_id=hosted.asset_id)
