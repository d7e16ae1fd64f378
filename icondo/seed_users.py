"""
Database seeding script for development.

Creates one staff account, two residents and two pending parcels.
Staff accounts are provisioned only this way, never through the API.

Run with: python -m icondo.seed_users
"""

import asyncio

from sqlalchemy import select

from icondo.app.db.session import AsyncSessionLocal, Base, engine
from icondo.app.models.enums import UserRole
from icondo.app.models.user import User
from icondo.app.models.parcel import Parcel  # noqa: F401  (registers the table)
from icondo.app.services.blob_storage import LocalBlobStorage
from icondo.app.services.identity_store import IdentityStore
from icondo.app.services.notification_service import ParcelNotifier
from icondo.app.services.parcel_lifecycle import ParcelLifecycleManager
from icondo.app.services.parcel_store import ParcelStore
from icondo.app.core.config import settings


async def seed_users():
    """
    Seed initial users and parcels.

    Creates:
    - 1 staff user (staff01)
    - 2 residents (rooms 101 and 102)
    - 2 pending parcels
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        result = await db.execute(select(User).where(User.username == "staff01"))
        if result.scalar_one_or_none():
            print("ℹ️  staff01 already exists, skipping seeding")
            return

        identities = IdentityStore(db)
        staff = await identities.create(
            username="staff01", password="staff123",
            role=UserRole.STAFF, phone_number="081-234-5678",
        )
        print("✅ Created staff user (username: staff01, password: staff123)")

        resident1 = await identities.create(
            username="resident101", password="resident123",
            role=UserRole.RESIDENT, phone_number="081-111-1111", room_number="101",
        )
        resident2 = await identities.create(
            username="resident102", password="resident123",
            role=UserRole.RESIDENT, phone_number="081-222-2222", room_number="102",
        )
        print("✅ Created residents for rooms 101 and 102 (password: resident123)")

        lifecycle = ParcelLifecycleManager(
            parcels=ParcelStore(db),
            identities=identities,
            blobs=LocalBlobStorage(settings.upload_dir, settings.uploads_url_prefix),
            notifier=ParcelNotifier(),
        )
        await lifecycle.intake(staff.id, "TH123456789", "Kerry Express", resident_id=resident1.id)
        await lifecycle.intake(staff.id, "TH987654321", "Flash", resident_id=resident2.id)
        print("✅ Created 2 pending parcels")

        print("\n🎉 Seeding completed successfully!")
        print("\nSeeded users:")
        print("  - STAFF:    staff01 / staff123")
        print("  - RESIDENT: resident101 / resident123 (room 101)")
        print("  - RESIDENT: resident102 / resident123 (room 102)")


if __name__ == "__main__":
    asyncio.run(seed_users())
