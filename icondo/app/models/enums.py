"""
Domain enumerations.

Defines user roles, parcel status and photo kinds for the parcel service.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        STAFF: Building staff; records intake and confirms collection
        RESIDENT: Occupant of exactly one room; receives parcels
    """
    STAFF = "staff"
    RESIDENT = "resident"


class ParcelStatus(str, enum.Enum):
    """
    Parcel status enumeration.

    Status flow:
        PENDING → COLLECTED (terminal)
    """
    PENDING = "pending"
    COLLECTED = "collected"


class PhotoKind(str, enum.Enum):
    """Purpose of a stored parcel photo."""
    PARCEL = "parcel"      # taken at intake
    EVIDENCE = "evidence"  # taken at handoff
