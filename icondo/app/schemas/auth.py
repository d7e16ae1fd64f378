"""
Authentication and user Pydantic schemas.

Defines request and response schemas for login, token claims and residents.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from icondo.app.models.enums import UserRole


class LoginRequest(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint. The role must match the account's role.
    """
    username: str = Field(..., min_length=1, max_length=50, description="Username")
    password: str = Field(..., min_length=1, description="Password")
    role: UserRole = Field(..., description="Role the user signs in as")

    class Config:
        extra = "forbid"


class TokenClaims(BaseModel):
    """Claims carried by a bearer token."""
    sub: str = Field(..., min_length=1, description="Username")
    user_id: int = Field(..., gt=0, strict=True)
    role: UserRole
    room_number: Optional[str] = None
    phone_number: str
    exp: int


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash."""
    id: int
    username: str
    role: UserRole
    room_number: Optional[str] = None
    phone_number: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    """Caller profile, taken from verified token claims."""
    id: int
    username: str
    role: UserRole
    room_number: Optional[str] = None
    phone_number: str


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by a successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class ResidentRegister(BaseModel):
    """
    Schema for resident registration.

    Used by POST /users/residents (staff only).
    """
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    room_number: str = Field(..., min_length=1, max_length=20, description="Room occupied by the resident")
    phone_number: str = Field(..., min_length=1, max_length=30, description="Contact phone number")

    class Config:
        extra = "forbid"


class ResidentListResponse(BaseModel):
    residents: List[UserResponse]
    total: int
