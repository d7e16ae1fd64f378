"""
Parcel database model.

A parcel is received by staff for a resident and later handed over.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from icondo.app.db.session import Base
from icondo.app.models.enums import ParcelStatus


class Parcel(Base):
    """
    Parcel model.

    collected_at, staff_out_id and photo_out_path stay NULL until the
    parcel is collected; they are written only by the collect transition.
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    tracking_number = Column(String(100), unique=True, nullable=False, index=True)
    carrier_name = Column(String(100), nullable=False)

    # Ownership
    resident_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Status
    status = Column(Enum(ParcelStatus), default=ParcelStatus.PENDING, nullable=False, index=True)

    # Intake
    photo_in_path = Column(String(500), nullable=True)
    staff_in_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Collection
    photo_out_path = Column(String(500), nullable=True)
    staff_out_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    collected_at = Column(DateTime(timezone=True), nullable=True)

    resident = relationship("User", foreign_keys=[resident_id], lazy="joined")
    staff_in = relationship("User", foreign_keys=[staff_in_id], lazy="joined")
    staff_out = relationship("User", foreign_keys=[staff_out_id], lazy="joined")

    @property
    def resident_name(self):
        return self.resident.username if self.resident else None

    @property
    def room_number(self):
        return self.resident.room_number if self.resident else None

    @property
    def resident_phone(self):
        return self.resident.phone_number if self.resident else None

    @property
    def staff_in_name(self):
        return self.staff_in.username if self.staff_in else None

    @property
    def staff_out_name(self):
        return self.staff_out.username if self.staff_out else None

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking='{self.tracking_number}', resident_id={self.resident_id}, status='{self.status.value}')>"
