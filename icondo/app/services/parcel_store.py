"""
Parcel store.

Owns persisted parcel rows: insert, joined reads, history search and the
single conditional update used by the collect transition.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from icondo.app.core.exceptions import DuplicateTrackingNumberError, StorageFailureError
from icondo.app.models.enums import ParcelStatus
from icondo.app.models.parcel import Parcel
from icondo.app.models.user import User


@dataclass
class HistoryFilters:
    """Conjunctive history filters; date bounds are inclusive."""
    room_number: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ParcelStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        tracking_number: str,
        resident_id: int,
        carrier_name: str,
        staff_in_id: int,
        created_at: datetime,
        photo_in_path: Optional[str] = None,
    ) -> Parcel:
        """
        Insert a pending parcel and commit.

        Tracking number uniqueness comes from the table constraint, so two
        concurrent inserts of the same number cannot both succeed.
        """
        parcel = Parcel(
            tracking_number=tracking_number,
            resident_id=resident_id,
            carrier_name=carrier_name,
            photo_in_path=photo_in_path,
            status=ParcelStatus.PENDING,
            staff_in_id=staff_in_id,
            created_at=created_at,
        )
        self.db.add(parcel)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if "tracking_number" in str(exc.orig):
                raise DuplicateTrackingNumberError(tracking_number)
            raise StorageFailureError("Could not record parcel")

        return await self.find_by_id(parcel.id)

    async def find_by_id(self, parcel_id: int) -> Optional[Parcel]:
        """Fresh read of one parcel with resident and staff names joined."""
        result = await self.db.execute(
            select(Parcel)
            .where(Parcel.id == parcel_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_resident(self, resident_id: int) -> List[Parcel]:
        result = await self.db.execute(
            select(Parcel)
            .where(Parcel.resident_id == resident_id)
            .order_by(Parcel.created_at.desc(), Parcel.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def search(
        self,
        filters: HistoryFilters,
        limit: int,
        offset: int,
    ) -> Tuple[List[Parcel], int]:
        """
        Filtered, newest-first page of parcels plus the filtered total.
        """
        conditions = []
        if filters.room_number:
            conditions.append(User.room_number == filters.room_number)
        if filters.start_date:
            conditions.append(Parcel.created_at >= datetime.combine(filters.start_date, time.min))
        if filters.end_date:
            # inclusive: everything before the start of the following day
            conditions.append(
                Parcel.created_at < datetime.combine(filters.end_date + timedelta(days=1), time.min)
            )

        count_query = (
            select(func.count(Parcel.id))
            .select_from(Parcel)
            .join(User, Parcel.resident_id == User.id)
            .where(*conditions)
        )
        total = (await self.db.execute(count_query)).scalar()

        query = (
            select(Parcel)
            .join(User, Parcel.resident_id == User.id)
            .where(*conditions)
            .order_by(Parcel.created_at.desc(), Parcel.id.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def mark_collected(
        self,
        parcel_id: int,
        staff_id: int,
        collected_at: datetime,
        photo_out_path: Optional[str] = None,
    ) -> bool:
        """
        Move a pending parcel to collected in one conditional UPDATE.

        Returns True when this call performed the transition. The caller
        commits. Check and write happen in the same statement, so of two
        racing calls exactly one sees a changed row.
        """
        result = await self.db.execute(
            update(Parcel)
            .where(Parcel.id == parcel_id, Parcel.status == ParcelStatus.PENDING)
            .values(
                status=ParcelStatus.COLLECTED,
                collected_at=collected_at,
                staff_out_id=staff_id,
                photo_out_path=photo_out_path,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
