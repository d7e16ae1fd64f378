"""
Identity store.

Persists staff and resident accounts and authenticates credentials.
Username and resident room uniqueness are enforced by table constraints;
the lookups done before insert only produce the specific error earlier.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from icondo.app.core.exceptions import (
    DuplicateUsernameError,
    InvalidRequestError,
    RoomOccupiedError,
    StorageFailureError,
)
from icondo.app.core.security import get_password_hash, verify_password
from icondo.app.models.enums import UserRole
from icondo.app.models.user import User

logger = logging.getLogger("icondo.identity")


class IdentityStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_credentials(self, username: str, role: UserRole) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.username == username, User.role == role)
        )
        return result.scalar_one_or_none()

    async def authenticate(self, username: str, password: str, role: UserRole) -> Optional[User]:
        """Return the user only if username, role and password all match."""
        user = await self.find_by_credentials(username, role)
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user

    async def find_resident_by_room(self, room_number: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.role == UserRole.RESIDENT, User.room_number == room_number)
        )
        return result.scalar_one_or_none()

    async def list_by_role(self, role: UserRole) -> List[User]:
        """Residents come back ordered by room number, staff by username."""
        order = User.room_number if role == UserRole.RESIDENT else User.username
        result = await self.db.execute(
            select(User).where(User.role == role).order_by(order.asc(), User.id.asc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        username: str,
        password: str,
        role: UserRole,
        phone_number: str,
        room_number: Optional[str] = None,
    ) -> User:
        """
        Create a user account and commit it.

        Raises:
            InvalidRequestError: resident without a room, or staff with one
            DuplicateUsernameError: username already taken
            RoomOccupiedError: another resident already holds the room
        """
        if role == UserRole.RESIDENT and not room_number:
            raise InvalidRequestError("Residents must have a room number")
        if role == UserRole.STAFF and room_number:
            raise InvalidRequestError("Staff accounts cannot have a room number")

        existing = await self.db.execute(select(User.id).where(User.username == username))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateUsernameError(username)

        if role == UserRole.RESIDENT and await self.find_resident_by_room(room_number):
            raise RoomOccupiedError(room_number)

        user = User(
            username=username,
            hashed_password=get_password_hash(password),
            role=role,
            room_number=room_number,
            phone_number=phone_number,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            # A concurrent insert won the race; name the constraint it hit
            message = str(exc.orig)
            if "room_number" in message:
                raise RoomOccupiedError(room_number)
            if "username" in message:
                raise DuplicateUsernameError(username)
            raise StorageFailureError("Could not create user")

        await self.db.refresh(user)
        logger.info("Created %s account id=%s username=%s", role.value, user.id, username)
        return user
