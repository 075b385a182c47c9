"""
Event and venue management.
Capacity and status edits run under the same event row lock as the
capacity ledger so admin edits cannot break the capacity invariant.
"""

from typing import List, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError, OperationalError

from ceart_api.core.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StorageUnavailableError,
)
from ceart_api.db.database import DatabaseManager, db_manager
from ceart_api.db.repositories import EventRepository, VenueRepository
from ceart_api.models.event import Event, EventStatus, Venue, as_utc
from ceart_api.schemas.event import EventCreate, EventPatch
from ceart_api.services.capacity_ledger import CapacityLedger, capacity_ledger

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


class EventService:
    """
    Event CRUD plus the venue directory.
    """

    def __init__(self, database: DatabaseManager = db_manager, ledger: CapacityLedger = capacity_ledger):
        self.db_manager = database
        self.ledger = ledger

    def create_event(self, event_data: EventCreate) -> Event:
        """Create an event; an explicit initial status is treated as set by an admin."""
        try:
            with self.db_manager.get_transaction_session() as session:
                if event_data.venue_id is not None and VenueRepository(session).get_by_id(event_data.venue_id) is None:
                    raise NotFoundError("Venue", event_data.venue_id)

                event = Event(
                    title=event_data.title,
                    summary=event_data.summary,
                    description=event_data.description,
                    category=event_data.category,
                    tags=list(event_data.tags),
                    venue_id=event_data.venue_id,
                    start_at=event_data.start_at,
                    end_at=event_data.end_at,
                    capacity_total=event_data.capacity_total,
                    status=event_data.status,
                    soldout_by_ledger=False,
                )
                session.add(event)
                self.ledger.derive_status(event, 0)
                session.flush()
                session.refresh(event)
        except OperationalError as e:
            logger.error(f"Event creation failed in storage: {e}")
            raise StorageUnavailableError() from e

        logger.info(f"Event {event.id} created: '{event.title}' capacity={event.capacity_total}")
        return event

    def get_event(self, event_id: int) -> Event:
        with self.db_manager.get_session() as session:
            event = EventRepository(session).get_by_id(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def list_events(self, page: int = 1, page_size: int = 100, status: Optional[EventStatus] = None,
                    venue_id: Optional[int] = None, category: Optional[str] = None) -> Tuple[List[Event], int]:
        """List events ordered by start time."""
        page = max(1, page)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        with self.db_manager.get_session() as session:
            repository = EventRepository(session)
            events = repository.get_all(
                skip=(page - 1) * page_size,
                limit=page_size,
                status=status,
                venue_id=venue_id,
                category=category,
            )
            total = repository.count(status=status, venue_id=venue_id, category=category)
        return events, total

    def update_event(self, event_id: int, patch: EventPatch) -> Event:
        """
        Apply a partial update to an event.

        A status that differs from the current one is taken as set by an
        admin. Resending the current status changes nothing, and a scheduled
        event stays subject to the ledger, so a full one is sold out.

        Raises:
            InvalidInputError: empty patch or a resulting start >= end
            NotFoundError: event or referenced venue does not exist
            ConflictError: capacity_total would drop below the reserved qty
        """
        if patch.is_empty:
            raise InvalidInputError("No fields to update")

        try:
            with self.db_manager.get_transaction_session() as session:
                event = self.ledger.lock_event(session, event_id)
                reserved = self.ledger.reserved_qty(session, event_id)

                if patch.has("venue_id") and patch.venue_id is not None:
                    if VenueRepository(session).get_by_id(patch.venue_id) is None:
                        raise NotFoundError("Venue", patch.venue_id)

                if patch.has("capacity_total") and patch.capacity_total < reserved:
                    raise ConflictError(
                        f"Capacity {patch.capacity_total} is below the {reserved} units already booked",
                        {"event_id": event_id, "reserved_qty": reserved, "capacity_total": patch.capacity_total},
                    )

                start_at = patch.start_at if patch.has("start_at") else as_utc(event.start_at)
                end_at = patch.end_at if patch.has("end_at") else as_utc(event.end_at)
                if start_at >= end_at:
                    raise InvalidInputError(
                        "start_at must be before end_at",
                        {"start_at": start_at.isoformat(), "end_at": end_at.isoformat()},
                    )

                previous_status = event.status
                applied = patch.apply_to(event)
                if patch.has("status") and patch.status != previous_status:
                    event.soldout_by_ledger = False
                self.ledger.derive_status(event, reserved)
                session.flush()
                session.refresh(event)
        except OperationalError as e:
            logger.error(f"Update of event {event_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        logger.info(f"Event {event_id} updated: fields={applied} status={event.status.value}")
        return event

    def delete_event(self, event_id: int) -> Event:
        """Delete an event together with its bookings."""
        try:
            with self.db_manager.get_transaction_session() as session:
                event = self.ledger.lock_event(session, event_id)
                session.delete(event)
                session.flush()
        except OperationalError as e:
            logger.error(f"Deletion of event {event_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        logger.info(f"Event {event_id} deleted")
        return event

    # Venues

    def list_venues(self) -> List[Venue]:
        with self.db_manager.get_session() as session:
            return VenueRepository(session).get_all()

    def create_venue(self, name: str) -> Venue:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Venue name is required", {"field": "name"})

        try:
            with self.db_manager.get_transaction_session() as session:
                repository = VenueRepository(session)
                if repository.get_by_name(name) is not None:
                    raise ConflictError(f"Venue '{name}' already exists", {"name": name})
                venue = repository.create(name)
        except IntegrityError as e:
            raise ConflictError(f"Venue '{name}' already exists", {"name": name}) from e
        except OperationalError as e:
            logger.error(f"Venue creation failed in storage: {e}")
            raise StorageUnavailableError() from e

        logger.info(f"Venue {venue.id} created: '{venue.name}'")
        return venue

    def delete_venue(self, venue_id: int) -> Venue:
        """Delete a venue; its events keep existing without a venue."""
        try:
            with self.db_manager.get_transaction_session() as session:
                repository = VenueRepository(session)
                venue = repository.get_by_id(venue_id)
                if venue is None:
                    raise NotFoundError("Venue", venue_id)
                repository.delete(venue)
        except OperationalError as e:
            logger.error(f"Deletion of venue {venue_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        logger.info(f"Venue {venue_id} deleted")
        return venue


# Global event service instance
event_service = EventService()
