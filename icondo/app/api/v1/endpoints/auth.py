"""
Authentication API endpoints.

Provides login for staff and residents.
"""

import logging
from fastapi import APIRouter, Depends
from icondo.app.core.config import settings
from icondo.app.core.dependencies import get_identity_store
from icondo.app.core.exceptions import InvalidCredentialsError
from icondo.app.core.jwt import create_access_token, claims_for_user
from icondo.app.schemas.auth import LoginRequest, TokenResponse, UserResponse
from icondo.app.services.identity_store import IdentityStore

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("icondo.auth")


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    identities: IdentityStore = Depends(get_identity_store)
):
    """
    Login user and return JWT token.

    The account must exist under the requested role and the password must match.
    Unknown user, wrong role and wrong password are indistinguishable to the caller.
    """
    user = await identities.authenticate(credentials.username, credentials.password, credentials.role)

    if user is None:
        logger.warning("Failed %s login for username=%s", credentials.role.value, credentials.username)
        raise InvalidCredentialsError()

    access_token = create_access_token(data=claims_for_user(user))
    logger.info("User %s signed in as %s", user.id, user.role.value)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user)
    )
