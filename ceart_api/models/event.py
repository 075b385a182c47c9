"""
Venue and event models.
Events carry the capacity that the booking ledger governs.
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, Enum, JSON,
    ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# Upper bound of an Integer column
MAX_DB_INT = 2147483647


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventStatus(str, PyEnum):
    """Event status enumeration."""
    SCHEDULED = "scheduled"
    SOLDOUT = "soldout"
    CANCELLED = "cancelled"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Venue(Base):
    """A place where events happen."""

    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="check_venue_name_not_empty"),
    )

    def __repr__(self):
        return f"<Venue(id={self.id}, name='{self.name}')>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Event(Base):
    """
    Event model with a fixed capacity.

    ``soldout_by_ledger`` records that the current ``soldout`` status was set
    automatically when the event filled up, which is the only case where the
    ledger is allowed to move it back to ``scheduled``.
    """

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    summary = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)

    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="SET NULL"), nullable=True, index=True)

    start_at = Column(DateTime(timezone=True), nullable=False, index=True)
    end_at = Column(DateTime(timezone=True), nullable=False)

    capacity_total = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(EventStatus, name="event_status", values_callable=_enum_values),
        nullable=False,
        default=EventStatus.SCHEDULED,
        index=True,
    )
    soldout_by_ledger = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    venue = relationship("Venue", lazy="joined")
    bookings = relationship(
        "Booking",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("capacity_total >= 0", name="check_capacity_total_non_negative"),
        CheckConstraint("start_at < end_at", name="check_event_window"),
        Index("idx_event_status_start", "status", "start_at"),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title='{self.title}', status='{self.status.value if self.status else None}')>"

    @property
    def venue_name(self):
        return self.venue.name if self.venue else None

    @property
    def is_open_for_booking(self) -> bool:
        """Scheduled events and ledger sold-out events are governed by capacity alone."""
        if self.status == EventStatus.SCHEDULED:
            return True
        return self.status == EventStatus.SOLDOUT and bool(self.soldout_by_ledger)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags or []),
            "venue_id": self.venue_id,
            "venue_name": self.venue_name,
            "start_at": self.start_at.isoformat() if self.start_at else None,
            "end_at": self.end_at.isoformat() if self.end_at else None,
            "capacity_total": self.capacity_total,
            "status": self.status.value if self.status else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
