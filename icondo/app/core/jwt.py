"""
JWT token utilities for authentication.

This module provides functions for encoding and decoding bearer tokens.
Tokens are stateless; their claims are trusted once the signature verifies.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from pydantic import ValidationError
from icondo.app.core.config import settings
from icondo.app.core.exceptions import InvalidTokenError
from icondo.app.schemas.auth import TokenClaims


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode (sub, user_id, role, room_number, phone_number)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "resident101",
            "user_id": 2,
            "role": "resident",
            "room_number": "101",
            "phone_number": "081-111-1111",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def claims_for_user(user) -> Dict[str, Any]:
    """Build the token claims for a User row."""
    return {
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
        "room_number": user.room_number,
        "phone_number": user.phone_number,
    }


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Verified claims (sub, user_id, role, room_number, phone_number, exp)

    Raises:
        InvalidTokenError: bad signature, malformed or expired token, or
            claims missing/ill-typed. Partial claims are never returned.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise InvalidTokenError()

    try:
        claims = TokenClaims.model_validate(payload)
    except ValidationError:
        raise InvalidTokenError("Invalid token payload")

    return claims.model_dump(mode="json")
