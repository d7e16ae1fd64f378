"""
Parcel lifecycle manager.

The only writer of a parcel's collection state. A parcel is PENDING from
intake until one successful collect moves it to COLLECTED, which is terminal.

Role checks (staff-only intake and collect) belong to the HTTP layer;
this module assumes the caller's identity has already been authorized.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from icondo.app.core.exceptions import (
    InvalidRequestError,
    ParcelNotPendingError,
    ResidentNotFoundError,
    ResourceNotFoundError,
    StorageFailureError,
)
from icondo.app.models.enums import ParcelStatus, PhotoKind, UserRole
from icondo.app.models.parcel import Parcel
from icondo.app.models.user import User
from icondo.app.services import pickup_code
from icondo.app.services.blob_storage import LocalBlobStorage
from icondo.app.services.identity_store import IdentityStore
from icondo.app.services.notification_service import ParcelNotifier
from icondo.app.services.parcel_store import ParcelStore

logger = logging.getLogger("icondo.lifecycle")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParcelLifecycleManager:

    def __init__(
        self,
        parcels: ParcelStore,
        identities: IdentityStore,
        blobs: LocalBlobStorage,
        notifier: ParcelNotifier,
    ):
        self.parcels = parcels
        self.identities = identities
        self.blobs = blobs
        self.notifier = notifier

    async def resolve_resident(
        self,
        resident_id: Optional[int] = None,
        room_number: Optional[str] = None,
    ) -> User:
        """
        Resolve a recipient given by id, by room, or by both.

        Raises:
            ResidentNotFoundError: no resident with that id or in that room
            InvalidRequestError: id and room name different residents
        """
        by_room = None
        if room_number is not None:
            by_room = await self.identities.find_resident_by_room(room_number)
            if by_room is None:
                raise ResidentNotFoundError(room_number=room_number)
            if resident_id is None:
                return by_room

        resident = await self.identities.find_by_id(resident_id)
        if resident is None or resident.role != UserRole.RESIDENT:
            raise ResidentNotFoundError(resident_id=resident_id)

        if by_room is not None and by_room.id != resident.id:
            raise InvalidRequestError(
                "resident_id and room_number refer to different residents",
                details={"resident_id": resident_id, "room_number": room_number}
            )
        return resident

    async def intake(
        self,
        staff_id: int,
        tracking_number: str,
        carrier_name: str,
        resident_id: Optional[int] = None,
        room_number: Optional[str] = None,
        photo_in_path: Optional[str] = None,
    ) -> Parcel:
        """
        Record a parcel's arrival as PENDING.

        Raises:
            ResidentNotFoundError: recipient could not be resolved
            InvalidRequestError: photo_in_path is not a stored photo
            DuplicateTrackingNumberError: tracking number already used
        """
        resident = await self.resolve_resident(resident_id, room_number)
        if photo_in_path is not None:
            self.blobs.require_stored(photo_in_path)

        parcel = await self.parcels.create(
            tracking_number=tracking_number,
            resident_id=resident.id,
            carrier_name=carrier_name,
            staff_in_id=staff_id,
            created_at=utcnow(),
            photo_in_path=photo_in_path,
        )
        logger.info(
            "Parcel %s (%s) received for room %s by staff %s",
            parcel.id, tracking_number, resident.room_number, staff_id,
        )
        self.notifier.parcel_arrived(parcel)
        return parcel

    async def collect(
        self,
        parcel_id: int,
        staff_id: int,
        evidence_photo_path: Optional[str] = None,
        evidence_photo: Optional[bytes] = None,
        evidence_extension: str = "jpg",
    ) -> Parcel:
        """
        Confirm handoff of a pending parcel.

        Evidence bytes, when given, are stored before the transition; if that
        write fails the parcel stays PENDING. The state check and update are
        one conditional statement, so concurrent collects of one parcel yield
        exactly one success.

        Raises:
            InvalidRequestError: evidence_photo_path is not a stored photo
            StorageFailureError: evidence photo could not be stored
            ParcelNotPendingError: parcel missing or already collected
        """
        if evidence_photo_path is not None:
            self.blobs.require_stored(evidence_photo_path)

        stored_here = False
        if evidence_photo is not None:
            # Nothing is written for a parcel that cannot be collected
            current = await self.parcels.find_by_id(parcel_id)
            if current is None or current.status != ParcelStatus.PENDING:
                raise ParcelNotPendingError(parcel_id)
            evidence_photo_path = await self.blobs.save(
                parcel_id, PhotoKind.EVIDENCE, evidence_photo, evidence_extension
            )
            stored_here = True

        db = self.parcels.db
        try:
            changed = await self.parcels.mark_collected(
                parcel_id=parcel_id,
                staff_id=staff_id,
                collected_at=utcnow(),
                photo_out_path=evidence_photo_path,
            )
            if not changed:
                await db.rollback()
                raise ParcelNotPendingError(parcel_id)
            await db.commit()
        except Exception:
            if stored_here:
                await self._discard_evidence(parcel_id, evidence_photo_path)
            raise

        parcel = await self.parcels.find_by_id(parcel_id)
        logger.info("Parcel %s collected, confirmed by staff %s", parcel_id, staff_id)
        self.notifier.parcel_collected(parcel)
        return parcel

    async def _discard_evidence(self, parcel_id: int, reference: str) -> None:
        # The caller re-raises its own error; a failed cleanup must not replace it
        try:
            await self.blobs.delete(reference)
        except StorageFailureError:
            logger.warning("Could not remove orphaned evidence %s for parcel %s", reference, parcel_id)

    def pickup_code_for(self, parcel: Parcel) -> str:
        """
        Pickup code payload for a parcel, refused once it is no longer pending.

        Ownership is checked by the caller.
        """
        if parcel.status != ParcelStatus.PENDING:
            raise ParcelNotPendingError(parcel.id)
        return pickup_code.encode_payload(parcel.id)

    async def resolve_scan(self, scanned_text: str):
        """
        Decode a scanned code and load the parcel it points at.

        Raises:
            PickupCodeError: unreadable or foreign code
            ResourceNotFoundError: the parcel does not exist
        """
        payload = pickup_code.decode(scanned_text)
        parcel = await self.parcels.find_by_id(payload.parcel_id)
        if parcel is None:
            raise ResourceNotFoundError("Parcel", payload.parcel_id)
        return payload, parcel
