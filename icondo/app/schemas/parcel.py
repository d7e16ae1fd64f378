"""
Parcel Pydantic schemas.

Defines request and response models for intake, collection, history and pickup codes.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional, List
from icondo.app.db.session import MAX_ROW_ID
from icondo.app.models.enums import ParcelStatus


class ParcelCreate(BaseModel):
    """
    Schema for recording a parcel at intake.

    The recipient is given either as resident_id or as room_number (or both,
    in which case they must agree).
    """
    tracking_number: str = Field(..., min_length=1, max_length=100, description="Unique carrier tracking number")
    carrier_name: str = Field(..., min_length=1, max_length=100, description="Delivering carrier")
    resident_id: Optional[int] = Field(None, gt=0, le=MAX_ROW_ID, description="Recipient resident ID")
    room_number: Optional[str] = Field(None, min_length=1, max_length=20, description="Recipient room number")
    photo_in_path: Optional[str] = Field(None, max_length=500, description="Stored intake photo reference")

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def require_recipient(self):
        if self.resident_id is None and self.room_number is None:
            raise ValueError("Either resident_id or room_number is required")
        return self


class ParcelCollect(BaseModel):
    """
    Schema for confirming collection.

    Evidence is either a reference to an already uploaded photo or an
    inline data URL that is stored before the status changes.
    """
    photo_out_path: Optional[str] = Field(None, max_length=500, description="Stored evidence photo reference")
    image_data: Optional[str] = Field(None, description="Evidence photo as data:image/...;base64 URL")

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def single_evidence_source(self):
        if self.photo_out_path is not None and self.image_data is not None:
            raise ValueError("Provide photo_out_path or image_data, not both")
        return self


class ParcelResponse(BaseModel):
    """Schema for parcel response, joined with resident and staff names."""
    id: int
    tracking_number: str
    carrier_name: str
    resident_id: int
    resident_name: Optional[str] = None
    room_number: Optional[str] = None
    resident_phone: Optional[str] = None
    status: ParcelStatus
    photo_in_path: Optional[str] = None
    photo_out_path: Optional[str] = None
    staff_in_id: Optional[int] = None
    staff_in_name: Optional[str] = None
    staff_out_id: Optional[int] = None
    staff_out_name: Optional[str] = None
    created_at: datetime
    collected_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ParcelListResponse(BaseModel):
    parcels: List[ParcelResponse]
    total: int


class ParcelHistoryResponse(BaseModel):
    """Schema for a filtered, paginated history page."""
    parcels: List[ParcelResponse]
    total: int
    limit: int
    offset: int


class PickupCodeResponse(BaseModel):
    parcel_id: int
    qr_code: str = Field(..., description="PNG QR code as a data URL")
    payload: str = Field(..., description="Text encoded in the QR code")


class PickupScanRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=2048, description="Text read from the QR code")

    class Config:
        extra = "forbid"


class PickupScanResponse(BaseModel):
    parcel_id: int
    purpose: str
    parcel: ParcelResponse
