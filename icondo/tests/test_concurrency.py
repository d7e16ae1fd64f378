"""
Race tests for collect and intake.

Each contender gets its own session and connection against a file database,
so the outcome is decided by the database rather than by a shared session.
"""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from icondo.app.core.exceptions import DuplicateTrackingNumberError, ParcelNotPendingError
from icondo.app.db.session import Base
from icondo.app.models.enums import ParcelStatus, UserRole
from icondo.app.services.blob_storage import LocalBlobStorage
from icondo.app.services.identity_store import IdentityStore
from icondo.app.services.notification_service import ParcelNotifier
from icondo.app.services.parcel_lifecycle import ParcelLifecycleManager
from icondo.app.services.parcel_store import ParcelStore


@pytest.fixture
async def race_sessions(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def desk(race_sessions):
    """One staff member and the resident of room 101; returns (staff_id, resident_id)."""
    async with race_sessions() as session:
        identities = IdentityStore(session)
        staff = await identities.create("staff01", "staff123", UserRole.STAFF, "081-234-5678")
        resident = await identities.create(
            "resident101", "resident123", UserRole.RESIDENT, "081-111-1111", room_number="101"
        )
        return staff.id, resident.id


def _manager(session, tmp_path) -> ParcelLifecycleManager:
    return ParcelLifecycleManager(
        parcels=ParcelStore(session),
        identities=IdentityStore(session),
        blobs=LocalBlobStorage(str(tmp_path / "uploads")),
        notifier=ParcelNotifier(),
    )


@pytest.mark.asyncio
async def test_concurrent_collects_have_one_winner(race_sessions, desk, tmp_path):
    staff_id, resident_id = desk
    async with race_sessions() as session:
        parcel = await _manager(session, tmp_path).intake(
            staff_id=staff_id, tracking_number="TH1", carrier_name="Kerry Express", resident_id=resident_id
        )

    async def attempt():
        async with race_sessions() as session:
            return await _manager(session, tmp_path).collect(parcel.id, staff_id)

    results = await asyncio.gather(*[attempt() for _ in range(4)], return_exceptions=True)

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, ParcelNotPendingError)]
    assert len(winners) == 1
    assert len(losers) == 3

    async with race_sessions() as session:
        stored = await ParcelStore(session).find_by_id(parcel.id)
    assert stored.status == ParcelStatus.COLLECTED
    assert stored.collected_at is not None


@pytest.mark.asyncio
async def test_concurrent_intakes_of_one_tracking_number(race_sessions, desk, tmp_path):
    staff_id, resident_id = desk

    async def attempt():
        async with race_sessions() as session:
            return await _manager(session, tmp_path).intake(
                staff_id=staff_id, tracking_number="TH1", carrier_name="Flash", room_number="101"
            )

    results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

    created = [r for r in results if not isinstance(r, Exception)]
    duplicates = [r for r in results if isinstance(r, DuplicateTrackingNumberError)]
    assert len(created) == 1
    assert len(duplicates) == 1

    async with race_sessions() as session:
        assert len(await ParcelStore(session).find_by_resident(resident_id)) == 1
