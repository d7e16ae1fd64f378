"""
Photo upload schemas.
"""

from pydantic import BaseModel, Field
from icondo.app.models.enums import PhotoKind


class Base64PhotoUpload(BaseModel):
    """Photo sent as a data URL, as produced by mobile camera capture."""
    image_data: str = Field(..., min_length=1, description="data:image/<fmt>;base64,<data>")
    parcel_id: str = Field(..., min_length=1, max_length=40, pattern=r"^[A-Za-z0-9_-]+$",
                           description="Parcel ID, or a temporary key before intake")
    kind: PhotoKind = Field(default=PhotoKind.PARCEL)

    class Config:
        extra = "forbid"


class PhotoUploadResponse(BaseModel):
    photo_path: str
    size_bytes: int
