"""
Centralized Test Configuration.
"""

import os
import tempfile

# Cheap hashing and a throwaway upload root, before the app reads its settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="icondo-uploads-"))

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from icondo.app.main import app
from icondo.app.db.session import get_db, Base
from icondo.app.core.dependencies import get_blob_storage
from icondo.app.models.enums import UserRole
from icondo.app.services.blob_storage import LocalBlobStorage
from icondo.app.services.identity_store import IdentityStore

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

STAFF_PASSWORD = "staff123"
RESIDENT_PASSWORD = "resident123"

# 1x1 PNG as a camera data URL
PNG_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def override_get_db():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def blob_storage(tmp_path):
    """Per-test photo storage rooted in a temporary directory."""
    return LocalBlobStorage(str(tmp_path / "uploads"), "/uploads")


@pytest.fixture(autouse=True)
def apply_overrides(blob_storage):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def login(client, username: str, password: str, role: str) -> dict:
    response = await client.post("/v1/auth/login", json={
        "username": username,
        "password": password,
        "role": role,
    })
    assert response.status_code == 200, response.text
    return response.json()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register_resident(client, staff_token: str, username: str, room_number: str, phone: str = "081-000-0000"):
    return await client.post(
        "/v1/users/residents",
        json={
            "username": username,
            "password": RESIDENT_PASSWORD,
            "room_number": room_number,
            "phone_number": phone,
        },
        headers=auth(staff_token),
    )


@pytest.fixture
async def staff_user(db_session):
    """Staff are provisioned out of band, so create one directly."""
    return await IdentityStore(db_session).create(
        username="staff01",
        password=STAFF_PASSWORD,
        role=UserRole.STAFF,
        phone_number="081-234-5678",
    )


@pytest.fixture
async def staff_token(client, staff_user):
    data = await login(client, "staff01", STAFF_PASSWORD, "staff")
    return data["access_token"]


@pytest.fixture
async def resident_101(client, staff_token):
    """Resident in room 101; returns (user_id, token)."""
    response = await register_resident(client, staff_token, "resident101", "101", "081-111-1111")
    assert response.status_code == 201, response.text
    data = await login(client, "resident101", RESIDENT_PASSWORD, "resident")
    return response.json()["id"], data["access_token"]


@pytest.fixture
async def resident_102(client, staff_token):
    """Resident in room 102; returns (user_id, token)."""
    response = await register_resident(client, staff_token, "resident102", "102", "081-222-2222")
    assert response.status_code == 201, response.text
    data = await login(client, "resident102", RESIDENT_PASSWORD, "resident")
    return response.json()["id"], data["access_token"]


async def create_parcel(client, staff_token: str, tracking_number: str, **recipient):
    payload = {"tracking_number": tracking_number, "carrier_name": recipient.pop("carrier_name", "Kerry Express")}
    payload.update(recipient)
    return await client.post("/v1/parcels", json=payload, headers=auth(staff_token))


async def upload_photo(client, staff_token: str, parcel_key: str = "temp", kind: str = "parcel") -> str:
    """Store a photo through the upload API and return its reference."""
    response = await client.post(
        "/v1/uploads/base64-photo",
        json={"image_data": PNG_DATA_URL, "parcel_id": parcel_key, "kind": kind},
        headers=auth(staff_token),
    )
    assert response.status_code == 201, response.text
    return response.json()["photo_path"]
