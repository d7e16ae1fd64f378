"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from icondo.app.api.v1.endpoints import auth, users, parcels, uploads

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Residents and profile
router.include_router(users.router)

# Parcel intake, collection, history and pickup codes
router.include_router(parcels.router)

# Intake and evidence photos
router.include_router(uploads.router)
