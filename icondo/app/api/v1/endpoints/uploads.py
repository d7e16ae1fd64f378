"""
Photo upload endpoints (staff only).

Intake photos and handoff evidence are stored in blob storage; the returned
photo_path is then passed to parcel intake or collection.
"""

import os
from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from icondo.app.core.config import settings
from icondo.app.core.dependencies import get_blob_storage
from icondo.app.core.exceptions import InvalidRequestError
from icondo.app.core.guards import require_staff
from icondo.app.models.enums import PhotoKind
from icondo.app.schemas.upload import Base64PhotoUpload, PhotoUploadResponse
from icondo.app.services.blob_storage import LocalBlobStorage, decode_data_url, extension_for

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("/parcel-photo", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_parcel_photo(
    photo: UploadFile = File(..., description="Image file"),
    parcel_id: str = Form("temp", pattern=r"^[A-Za-z0-9_-]+$", max_length=40),
    kind: PhotoKind = Form(PhotoKind.PARCEL),
    current_user: dict = Depends(require_staff),
    blobs: LocalBlobStorage = Depends(get_blob_storage)
):
    """
    Upload a photo as multipart form data.

    Only image content types are accepted, up to the configured size limit.
    """
    content_type = photo.content_type or ""
    if not content_type.startswith("image/"):
        raise InvalidRequestError("Only image files are allowed", details={"content_type": content_type})

    data = await photo.read(settings.max_upload_bytes + 1)
    if not data:
        raise InvalidRequestError("Uploaded file is empty")
    if len(data) > settings.max_upload_bytes:
        raise InvalidRequestError("Image exceeds the upload size limit",
                                  details={"max_bytes": settings.max_upload_bytes})

    extension = os.path.splitext(photo.filename or "")[1].lstrip(".") or content_type.split("/", 1)[1]
    photo_path = await blobs.save(parcel_id, kind, data, extension_for(extension))
    return PhotoUploadResponse(photo_path=photo_path, size_bytes=len(data))


@router.post("/base64-photo", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_base64_photo(
    upload: Base64PhotoUpload,
    current_user: dict = Depends(require_staff),
    blobs: LocalBlobStorage = Depends(get_blob_storage)
):
    """Upload a photo captured on a phone camera as a data URL."""
    data, extension = decode_data_url(upload.image_data, settings.max_upload_bytes)
    photo_path = await blobs.save(upload.parcel_id, upload.kind, data, extension)
    return PhotoUploadResponse(photo_path=photo_path, size_bytes=len(data))
