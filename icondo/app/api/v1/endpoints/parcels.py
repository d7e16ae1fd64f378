"""
Parcel API endpoints.

Staff record intake and confirm collection; residents read their own parcels
and fetch pickup codes for parcels still waiting at the desk.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import Response

from icondo.app.core.config import settings
from icondo.app.core.dependencies import get_current_user, get_lifecycle_manager, get_parcel_store
from icondo.app.core.exceptions import InvalidRequestError, ResourceNotFoundError
from icondo.app.core.guards import OwnershipGuard, require_staff
from icondo.app.db.session import MAX_ROW_ID
from icondo.app.schemas.parcel import (
    ParcelCollect,
    ParcelCreate,
    ParcelHistoryResponse,
    ParcelListResponse,
    ParcelResponse,
    PickupCodeResponse,
    PickupScanRequest,
    PickupScanResponse,
)
from icondo.app.services import pickup_code
from icondo.app.services.blob_storage import decode_data_url
from icondo.app.services.parcel_lifecycle import ParcelLifecycleManager
from icondo.app.services.parcel_store import HistoryFilters, ParcelStore

router = APIRouter(prefix="/parcels", tags=["Parcels"])
ownership_guard = OwnershipGuard()


async def _load_parcel(parcels: ParcelStore, parcel_id: int):
    parcel = await parcels.find_by_id(parcel_id)
    if parcel is None:
        raise ResourceNotFoundError("Parcel", parcel_id)
    return parcel


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    current_user: dict = Depends(require_staff),
    lifecycle: ParcelLifecycleManager = Depends(get_lifecycle_manager)
):
    """
    Record an incoming parcel (staff only).

    Validates:
    - Recipient resolves to a resident (by id and/or room number)
    - Tracking number is unique
    """
    parcel = await lifecycle.intake(
        staff_id=current_user["user_id"],
        tracking_number=parcel_data.tracking_number,
        carrier_name=parcel_data.carrier_name,
        resident_id=parcel_data.resident_id,
        room_number=parcel_data.room_number,
        photo_in_path=parcel_data.photo_in_path,
    )
    return ParcelResponse.model_validate(parcel)


@router.get("/history", response_model=ParcelHistoryResponse)
async def search_history(
    room_number: Optional[str] = Query(None, min_length=1, max_length=20, description="Recipient room"),
    start_date: Optional[date] = Query(None, description="Received on or after (inclusive)"),
    end_date: Optional[date] = Query(None, description="Received on or before (inclusive)"),
    limit: int = Query(settings.history_default_limit, ge=1, le=settings.history_max_limit),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
    parcels: ParcelStore = Depends(get_parcel_store)
):
    """
    Filtered parcel history, newest first.

    Filters combine with AND; total counts the filtered set before paging.
    """
    if start_date and end_date and start_date > end_date:
        raise InvalidRequestError("start_date must not be after end_date")

    filters = HistoryFilters(room_number=room_number, start_date=start_date, end_date=end_date)
    page, total = await parcels.search(filters, limit=limit, offset=offset)

    return ParcelHistoryResponse(
        parcels=[ParcelResponse.model_validate(p) for p in page],
        total=total,
        limit=limit,
        offset=offset
    )


@router.post("/scan", response_model=PickupScanResponse)
async def scan_pickup_code(
    scan: PickupScanRequest,
    current_user: dict = Depends(require_staff),
    lifecycle: ParcelLifecycleManager = Depends(get_lifecycle_manager)
):
    """
    Decode a scanned pickup code and return the parcel it refers to (staff only).

    The parcel is read fresh; its status decides whether collect will succeed.
    """
    payload, parcel = await lifecycle.resolve_scan(scan.code)
    return PickupScanResponse(
        parcel_id=payload.parcel_id,
        purpose=payload.purpose,
        parcel=ParcelResponse.model_validate(parcel)
    )


@router.get("/resident/{resident_id}", response_model=ParcelListResponse)
async def list_resident_parcels(
    resident_id: int = Path(..., gt=0, le=MAX_ROW_ID, description="Resident ID"),
    current_user: dict = Depends(get_current_user),
    parcels: ParcelStore = Depends(get_parcel_store)
):
    """
    A resident's parcels, newest first.

    Residents may only list their own; staff may list anyone's.
    """
    ownership_guard.enforce(resident_id, current_user, "parcel list")

    resident_parcels = await parcels.find_by_resident(resident_id)
    return ParcelListResponse(
        parcels=[ParcelResponse.model_validate(p) for p in resident_parcels],
        total=len(resident_parcels)
    )


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: int = Path(..., gt=0, le=MAX_ROW_ID, description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    parcels: ParcelStore = Depends(get_parcel_store)
):
    """
    Get a single parcel.

    Ownership is enforced - residents can only view their own parcels.
    """
    parcel = await _load_parcel(parcels, parcel_id)
    ownership_guard.enforce(parcel.resident_id, current_user, "parcel")
    return ParcelResponse.model_validate(parcel)


@router.put("/{parcel_id}/collect", response_model=ParcelResponse)
async def collect_parcel(
    parcel_id: int = Path(..., gt=0, le=MAX_ROW_ID, description="Parcel ID"),
    collect_data: Optional[ParcelCollect] = None,
    current_user: dict = Depends(require_staff),
    lifecycle: ParcelLifecycleManager = Depends(get_lifecycle_manager)
):
    """
    Confirm that a pending parcel was handed to its resident (staff only).

    Returns 409 if the parcel does not exist or was already collected.
    """
    collect_data = collect_data or ParcelCollect()

    evidence, extension = None, "jpg"
    if collect_data.image_data is not None:
        evidence, extension = decode_data_url(collect_data.image_data, settings.max_upload_bytes)

    parcel = await lifecycle.collect(
        parcel_id=parcel_id,
        staff_id=current_user["user_id"],
        evidence_photo_path=collect_data.photo_out_path,
        evidence_photo=evidence,
        evidence_extension=extension,
    )
    return ParcelResponse.model_validate(parcel)


@router.get("/{parcel_id}/qrcode", response_model=PickupCodeResponse)
async def get_pickup_code(
    parcel_id: int = Path(..., gt=0, le=MAX_ROW_ID, description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    parcels: ParcelStore = Depends(get_parcel_store),
    lifecycle: ParcelLifecycleManager = Depends(get_lifecycle_manager)
):
    """
    Pickup QR code for the owning resident, as a PNG data URL.

    Refused with 409 once the parcel has been collected.
    """
    parcel = await _load_parcel(parcels, parcel_id)
    ownership_guard.enforce_owner(parcel.resident_id, current_user, "pickup code")

    payload = lifecycle.pickup_code_for(parcel)
    png = pickup_code.render_png(payload)

    return PickupCodeResponse(
        parcel_id=parcel.id,
        qr_code=pickup_code.png_data_url(png),
        payload=payload
    )


@router.get("/{parcel_id}/qrcode.png", response_class=Response)
async def get_pickup_code_png(
    parcel_id: int = Path(..., gt=0, le=MAX_ROW_ID, description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    parcels: ParcelStore = Depends(get_parcel_store),
    lifecycle: ParcelLifecycleManager = Depends(get_lifecycle_manager)
):
    """Same as /qrcode, returned as an image/png body."""
    parcel = await _load_parcel(parcels, parcel_id)
    ownership_guard.enforce_owner(parcel.resident_id, current_user, "pickup code")

    payload = lifecycle.pickup_code_for(parcel)
    return Response(
        content=pickup_code.render_png(payload),
        media_type="image/png",
        headers={"Cache-Control": "no-store"}
    )
