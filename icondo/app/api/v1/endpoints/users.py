"""
User API endpoints.

Staff list and register residents; any signed-in user can read their profile.
"""

from fastapi import APIRouter, Depends, status
from icondo.app.core.dependencies import get_current_user, get_identity_store
from icondo.app.core.guards import require_staff
from icondo.app.models.enums import UserRole
from icondo.app.schemas.auth import ProfileResponse, ResidentListResponse, ResidentRegister, UserResponse
from icondo.app.services.identity_store import IdentityStore

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: dict = Depends(get_current_user)):
    """Return the caller's identity as carried by their token."""
    return ProfileResponse(
        id=current_user["user_id"],
        username=current_user["sub"],
        role=current_user["role"],
        room_number=current_user["room_number"],
        phone_number=current_user["phone_number"],
    )


@router.get("/residents", response_model=ResidentListResponse)
async def list_residents(
    current_user: dict = Depends(require_staff),
    identities: IdentityStore = Depends(get_identity_store)
):
    """List residents ordered by room number (staff only)."""
    residents = await identities.list_by_role(UserRole.RESIDENT)
    return ResidentListResponse(
        residents=[UserResponse.model_validate(r) for r in residents],
        total=len(residents)
    )


@router.post("/residents", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_resident(
    resident_data: ResidentRegister,
    current_user: dict = Depends(require_staff),
    identities: IdentityStore = Depends(get_identity_store)
):
    """
    Register a resident (staff only).

    Fails with 409 if the username is taken or the room already has a resident.
    """
    resident = await identities.create(
        username=resident_data.username,
        password=resident_data.password,
        role=UserRole.RESIDENT,
        phone_number=resident_data.phone_number,
        room_number=resident_data.room_number,
    )
    return UserResponse.model_validate(resident)
