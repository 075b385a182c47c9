"""
Booking model.
A booking holds ``qty`` units of an event's capacity while it is confirmed.
"""

from enum import Enum as PyEnum

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Enum, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from ceart_api.models.event import Base, utcnow, _enum_values


class BookingStatus(str, PyEnum):
    """Booking status enumeration."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base):
    """
    Booking model. Created confirmed or not at all.
    """

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    qty = Column(Integer, nullable=False)
    status = Column(
        Enum(BookingStatus, name="booking_status", values_callable=_enum_values),
        nullable=False,
        default=BookingStatus.CONFIRMED,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    event = relationship("Event", back_populates="bookings", lazy="joined")

    __table_args__ = (
        CheckConstraint("qty > 0", name="check_qty_positive"),
        Index("idx_booking_event_status", "event_id", "status"),
        Index("idx_booking_event_email", "event_id", "email"),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, event_id={self.event_id}, qty={self.qty}, status='{self.status.value if self.status else None}')>"

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    @property
    def event_title(self):
        return self.event.title if self.event else None

    @property
    def event_start_at(self):
        return self.event.start_at if self.event else None

    @property
    def event_status(self):
        return self.event.status if self.event else None

    @property
    def venue_name(self):
        return self.event.venue_name if self.event else None

    def to_dict(self) -> dict:
        """Convert booking to dictionary representation."""
        return {
            "id": self.id,
            "event_id": self.event_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "notes": self.notes,
            "qty": self.qty,
            "status": self.status.value if self.status else None,
            "event_title": self.event_title,
            "event_status": self.event_status.value if self.event_status else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
