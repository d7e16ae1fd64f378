"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List
from fastapi import Depends
from icondo.app.models.enums import UserRole
from icondo.app.core.dependencies import get_current_user
from icondo.app.core.exceptions import InsufficientPermissionsError


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/users/residents")
        async def list_residents(current_user: dict = Depends(require_role([UserRole.STAFF]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        InsufficientPermissionsError (403) if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if UserRole(current_user["role"]) not in allowed_roles:
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        return current_user

    return role_checker


require_staff = require_role([UserRole.STAFF])


def is_owner_or_staff(resident_id: int, current_user: dict) -> bool:
    """
    Staff may see every resident's parcels; a resident only their own.
    """
    if current_user["role"] == UserRole.STAFF.value:
        return True
    return current_user["user_id"] == resident_id


class OwnershipGuard:
    """
    Ownership guard for resident-scoped resources.

    Usage:
        ownership_guard = OwnershipGuard()

        parcel = await parcels.find_by_id(parcel_id)
        ownership_guard.enforce(parcel.resident_id, current_user, "parcel")
    """

    def enforce(
        self,
        resident_id: int,
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Raise 403 unless the caller is staff or the owning resident.
        """
        if not is_owner_or_staff(resident_id, current_user):
            raise InsufficientPermissionsError(
                f"Access denied. You do not have permission to access this {resource_name}."
            )

    def enforce_owner(
        self,
        resident_id: int,
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Raise 403 unless the caller is the owning resident; staff included.
        """
        if (current_user["role"] != UserRole.RESIDENT.value
                or current_user["user_id"] != resident_id):
            raise InsufficientPermissionsError(
                f"Access denied. Only the owning resident may use this {resource_name}."
            )
