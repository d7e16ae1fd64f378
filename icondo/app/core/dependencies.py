"""
Request-scoped dependencies for FastAPI.

Provides bearer authentication and per-request construction of the stores,
blob storage and lifecycle manager around the request's database session.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from icondo.app.core.config import settings
from icondo.app.core.exceptions import AuthenticationError
from icondo.app.core.jwt import decode_access_token
from icondo.app.db.session import get_db
from icondo.app.services.blob_storage import LocalBlobStorage
from icondo.app.services.identity_store import IdentityStore
from icondo.app.services.notification_service import ParcelNotifier
from icondo.app.services.parcel_lifecycle import ParcelLifecycleManager
from icondo.app.services.parcel_store import ParcelStore

# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Verifies the bearer token signature and expiry and returns its claims.
    No database lookup is made; claims are trusted once verified.

    Raises:
        AuthenticationError: 401 if no bearer token was sent
        InvalidTokenError: 401 if the token fails verification
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")

    return decode_access_token(credentials.credentials)


def get_blob_storage() -> LocalBlobStorage:
    return LocalBlobStorage(settings.upload_dir, settings.uploads_url_prefix)


def get_notifier() -> ParcelNotifier:
    return ParcelNotifier()


def get_identity_store(db: AsyncSession = Depends(get_db)) -> IdentityStore:
    return IdentityStore(db)


def get_parcel_store(db: AsyncSession = Depends(get_db)) -> ParcelStore:
    return ParcelStore(db)


def get_lifecycle_manager(
    db: AsyncSession = Depends(get_db),
    blobs: LocalBlobStorage = Depends(get_blob_storage),
    notifier: ParcelNotifier = Depends(get_notifier),
) -> ParcelLifecycleManager:
    """Build the lifecycle manager; the stores share the request's session."""
    return ParcelLifecycleManager(
        parcels=ParcelStore(db),
        identities=IdentityStore(db),
        blobs=blobs,
        notifier=notifier,
    )
