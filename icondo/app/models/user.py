"""
User database model.

This module defines the User SQLAlchemy model for staff and residents.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from icondo.app.db.session import Base
from icondo.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and parcel ownership.

    Residents carry a room number that is unique across residents;
    staff rows leave it NULL.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(Enum(UserRole), nullable=False, index=True)
    room_number = Column(String(20), unique=True, index=True, nullable=True)
    phone_number = Column(String(30), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}', room='{self.room_number}')>"
