"""
Repositories for plain record-store reads and writes.
Capacity-affecting writes go through the capacity ledger instead.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ceart_api.models.event import Event, EventStatus, Venue
from ceart_api.models.booking import Booking
from ceart_api.models.settings import ConfigRecord


class VenueRepository:
    """
    Repository for Venue model operations.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[Venue]:
        """Get all venues ordered by name."""
        return list(self.session.scalars(select(Venue).order_by(Venue.name)))

    def get_by_id(self, venue_id: int) -> Optional[Venue]:
        return self.session.get(Venue, venue_id)

    def get_by_name(self, name: str) -> Optional[Venue]:
        return self.session.scalars(select(Venue).where(Venue.name == name)).first()

    def create(self, name: str) -> Venue:
        """Create a venue; the caller's transaction commits it."""
        venue = Venue(name=name)
        self.session.add(venue)
        self.session.flush()
        return venue

    def delete(self, venue: Venue) -> None:
        self.session.delete(venue)
        self.session.flush()


class EventRepository:
    """
    Repository for Event model operations.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, event_id: int) -> Optional[Event]:
        """Get event by ID."""
        return self.session.get(Event, event_id)

    def _filtered(self, query, status: Optional[EventStatus], venue_id: Optional[int],
                  category: Optional[str]):
        if status:
            query = query.where(Event.status == status)
        if venue_id is not None:
            query = query.where(Event.venue_id == venue_id)
        if category:
            query = query.where(Event.category == category)
        return query

    def get_all(self, skip: int = 0, limit: int = 100, status: Optional[EventStatus] = None,
                venue_id: Optional[int] = None, category: Optional[str] = None) -> List[Event]:
        """Get events ordered by start time with pagination and optional filters."""
        query = self._filtered(select(Event), status, venue_id, category)
        query = query.order_by(Event.start_at, Event.id).offset(skip).limit(limit)
        return list(self.session.scalars(query).unique())

    def count(self, status: Optional[EventStatus] = None, venue_id: Optional[int] = None,
              category: Optional[str] = None) -> int:
        """Count events with optional filters."""
        query = self._filtered(select(func.count(Event.id)), status, venue_id, category)
        return self.session.scalar(query) or 0


class BookingRepository:
    """
    Read-side repository for bookings.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.session.get(Booking, booking_id)

    def get_all(self, skip: int = 0, limit: int = 100) -> Tuple[List[Booking], int]:
        """Get all bookings, newest first."""
        total = self.session.scalar(select(func.count(Booking.id))) or 0
        query = (
            select(Booking)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(self.session.scalars(query).unique()), total

    def get_by_event(self, event_id: int) -> List[Booking]:
        """Get the bookings of one event, newest first."""
        query = (
            select(Booking)
            .where(Booking.event_id == event_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return list(self.session.scalars(query).unique())


class ConfigRecordRepository:
    """
    Repository for key-value configuration records.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, key: str, for_update: bool = False) -> Optional[ConfigRecord]:
        query = select(ConfigRecord).where(ConfigRecord.key == key)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        return self.session.scalars(query).first()

    def put(self, key: str, value) -> ConfigRecord:
        """Insert or replace the value stored under ``key``."""
        record = self.get(key)
        if record is None:
            record = ConfigRecord(key=key, value=value)
            self.session.add(record)
        else:
            record.value = value
        self.session.flush()
        return record
