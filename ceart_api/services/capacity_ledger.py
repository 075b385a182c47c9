"""
Capacity ledger.

Keeps, for every event, the sum of confirmed booking quantities at or below
the event's ``capacity_total`` and moves the event between ``scheduled`` and
``soldout`` as that sum changes.

Every operation runs inside one scoped transaction. The event row is locked
(``SELECT ... FOR UPDATE``) before the confirmed-bookings aggregate is read,
so two operations on the same event are serialised by the database while
operations on different events proceed independently. Nothing is coordinated
in process memory.
"""

from typing import Optional, Union
import logging

from sqlalchemy import select, func, case
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ceart_api.core.exceptions import (
    NotFoundError,
    CapacityExceededError,
    EventClosedError,
    DuplicateBookingError,
    InvalidInputError,
    StorageUnavailableError,
)
from ceart_api.core.logging import log_ledger_operation, log_ledger_rejection
from ceart_api.db.database import DatabaseManager, db_manager
from ceart_api.models.booking import Booking, BookingStatus
from ceart_api.models.event import MAX_DB_INT, Event, EventStatus
from ceart_api.schemas.booking import BookingPatch, RequesterInfo
from ceart_api.schemas.event import AvailabilitySummary

logger = logging.getLogger(__name__)


def validate_qty(qty) -> int:
    """Quantities are positive integers; bools and floats are rejected."""
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise InvalidInputError("qty must be an integer", {"qty": repr(qty)})
    if qty < 1:
        raise InvalidInputError("qty must be at least 1", {"qty": qty})
    if qty > MAX_DB_INT:
        raise InvalidInputError(f"qty must be at most {MAX_DB_INT}", {"qty": qty})
    return qty


def _required(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{field} is required", {"field": field})
    return str(value).strip()


class CapacityLedger:
    """
    Enforces the capacity invariant and the ledger-governed event statuses.

    Attributes:
        db_manager: Source of scoped transactions
        enable_duplicate_prevention: Reject a second confirmed booking with the
            same email for one event
    """

    def __init__(self, database: DatabaseManager = db_manager, enable_duplicate_prevention: bool = True):
        self.db_manager = database
        self.enable_duplicate_prevention = enable_duplicate_prevention

    # Building blocks shared with EventService; callers hold the transaction.

    def lock_event(self, session: Session, event_id: int) -> Event:
        """Lock the event row for the rest of the transaction."""
        event = session.scalars(
            select(Event)
            .where(Event.id == event_id)
            .with_for_update(of=Event)
            .execution_options(populate_existing=True)
        ).first()
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def reserved_qty(self, session: Session, event_id: int) -> int:
        """Sum of qty over the event's confirmed bookings."""
        reserved = session.scalar(
            select(func.coalesce(func.sum(Booking.qty), 0)).where(
                Booking.event_id == event_id,
                Booking.status == BookingStatus.CONFIRMED,
            )
        )
        return int(reserved or 0)

    def derive_status(self, event: Event, reserved: int) -> EventStatus:
        """
        Move a scheduled event to soldout when it is full, and a ledger-set
        soldout back to scheduled when it has room. Other statuses are left
        alone.
        """
        available = max(0, event.capacity_total - reserved)
        if available == 0 and event.status == EventStatus.SCHEDULED:
            event.status = EventStatus.SOLDOUT
            event.soldout_by_ledger = True
            logger.info(f"Event {event.id} sold out ({reserved}/{event.capacity_total})")
        elif available > 0 and event.status == EventStatus.SOLDOUT and event.soldout_by_ledger:
            event.status = EventStatus.SCHEDULED
            event.soldout_by_ledger = False
            logger.info(f"Event {event.id} reopened ({reserved}/{event.capacity_total})")
        return event.status

    def admit(self, event: Event, reserved: int, qty: int) -> int:
        """
        Check that ``qty`` more units fit on ``event``.

        Returns the units available before admission.
        """
        if not event.is_open_for_booking:
            raise EventClosedError(event.id, event.status.value)

        available = max(0, event.capacity_total - reserved)
        if available < qty:
            raise CapacityExceededError(event.id, available, qty)
        return available

    def _check_duplicate(self, session: Session, event_id: int, email: str,
                         exclude_booking_id: Optional[int] = None):
        if not self.enable_duplicate_prevention:
            return
        query = select(Booking.id).where(
            Booking.event_id == event_id,
            Booking.status == BookingStatus.CONFIRMED,
            func.lower(Booking.email) == email.lower(),
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        if session.scalar(query.limit(1)) is not None:
            raise DuplicateBookingError(event_id, email)

    def _lock_booking(self, session: Session, booking_id: int) -> Booking:
        """Lock the owning event, then re-read the booking under that lock."""
        event_id = session.scalar(select(Booking.event_id).where(Booking.id == booking_id))
        if event_id is None:
            raise NotFoundError("Booking", booking_id)

        self.lock_event(session, event_id)

        booking = session.scalars(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update(of=Booking)
            .execution_options(populate_existing=True)
        ).first()
        if booking is None:
            # Deleted between the lookup and the lock
            raise NotFoundError("Booking", booking_id)
        return booking

    # Operations

    def reserve(self, event_id: int, qty: int, requester: RequesterInfo) -> Booking:
        """
        Atomically check capacity and record a confirmed booking.

        Args:
            event_id: Event to book
            qty: Units requested
            requester: Name, email and optional phone and notes

        Returns:
            The confirmed booking

        Raises:
            InvalidInputError: qty is not a positive integer or requester data is missing
            NotFoundError: event does not exist
            EventClosedError: event is cancelled or sold out by an administrator
            CapacityExceededError: fewer than qty units remain
            DuplicateBookingError: requester already holds a confirmed booking
            StorageUnavailableError: the database failed; nothing was written
        """
        qty = validate_qty(qty)
        name = _required(requester.name, "name")
        email = _required(requester.email, "email")

        try:
            with self.db_manager.get_transaction_session() as session:
                event = self.lock_event(session, event_id)
                reserved = self.reserved_qty(session, event_id)

                self.admit(event, reserved, qty)
                self._check_duplicate(session, event_id, email)

                booking = Booking(
                    event=event,
                    name=name,
                    email=email,
                    phone=requester.phone,
                    notes=requester.notes,
                    qty=qty,
                    status=BookingStatus.CONFIRMED,
                )
                session.add(booking)
                event_status = self.derive_status(event, reserved + qty)
                session.flush()

        except (NotFoundError, EventClosedError, CapacityExceededError, DuplicateBookingError) as e:
            log_ledger_rejection("reserve", event_id, e.message)
            raise
        except OperationalError as e:
            logger.error(f"Reservation for event {event_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        log_ledger_operation("reserve", event_id, booking.id, qty, event_status.value)
        return booking

    def update_booking(self, booking_id: int, patch: BookingPatch) -> Booking:
        """
        Apply a partial update to a booking.

        Status changes and resizing are admitted against the event's
        capacity and re-derive the event status in the same transaction.
        """
        if patch.is_empty:
            raise InvalidInputError("No fields to update")
        if patch.has("qty"):
            validate_qty(patch.qty)

        try:
            with self.db_manager.get_transaction_session() as session:
                booking = self._lock_booking(session, booking_id)
                event = booking.event
                reserved = self.reserved_qty(session, event.id)

                was_confirmed = booking.is_confirmed
                new_status = patch.status if patch.has("status") else booking.status
                new_qty = patch.qty if patch.has("qty") else booking.qty
                new_email = patch.email if patch.has("email") else booking.email

                if new_status == BookingStatus.CONFIRMED:
                    others = reserved - booking.qty if was_confirmed else reserved
                    growing = not was_confirmed or new_qty > booking.qty
                    if growing:
                        self.admit(event, others, new_qty)
                    if not was_confirmed or new_email.lower() != booking.email.lower():
                        self._check_duplicate(session, event.id, new_email, exclude_booking_id=booking.id)

                reserved_after = reserved
                if was_confirmed:
                    reserved_after -= booking.qty
                if new_status == BookingStatus.CONFIRMED:
                    reserved_after += new_qty

                applied = patch.apply_to(booking)
                event_status = self.derive_status(event, reserved_after)
                session.flush()

        except (NotFoundError, EventClosedError, CapacityExceededError, DuplicateBookingError) as e:
            log_ledger_rejection("update_booking", getattr(e, "event_id", None), e.message)
            raise
        except OperationalError as e:
            logger.error(f"Update of booking {booking_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        log_ledger_operation(
            "update_booking", booking.event_id, booking.id, booking.qty, event_status.value,
            extra={"fields": applied, "booking_status": booking.status.value},
        )
        return booking

    def set_status(self, booking_id: int, new_status: Union[BookingStatus, str]) -> Booking:
        """
        Cancel or reinstate a booking.

        Cancelling releases its qty; reinstating is admitted like a new
        reservation of the same qty.
        """
        try:
            new_status = BookingStatus(new_status)
        except ValueError:
            raise InvalidInputError(f"Unknown booking status: {new_status}", {"status": str(new_status)})
        return self.update_booking(booking_id, BookingPatch(status=new_status))

    def remove(self, booking_id: int) -> Booking:
        """
        Delete a booking. A confirmed booking releases its qty and may
        reopen a ledger sold-out event.

        Returns:
            The deleted booking (detached)
        """
        try:
            with self.db_manager.get_transaction_session() as session:
                booking = self._lock_booking(session, booking_id)
                event = booking.event

                if booking.is_confirmed:
                    reserved = self.reserved_qty(session, event.id)
                    self.derive_status(event, reserved - booking.qty)

                event_status = event.status
                session.delete(booking)
                session.flush()

        except NotFoundError:
            raise
        except OperationalError as e:
            logger.error(f"Removal of booking {booking_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        log_ledger_operation("remove", booking.event_id, booking.id, booking.qty, event_status.value)
        return booking

    def availability(self, event_id: int) -> AvailabilitySummary:
        """Read capacity, reserved and available units in one statement."""
        reserved_expr = func.coalesce(
            func.sum(case((Booking.status == BookingStatus.CONFIRMED, Booking.qty), else_=0)),
            0,
        )
        query = (
            select(Event.id, Event.capacity_total, Event.status, reserved_expr)
            .select_from(Event)
            .outerjoin(Booking, Booking.event_id == Event.id)
            .where(Event.id == event_id)
            .group_by(Event.id, Event.capacity_total, Event.status)
        )

        try:
            with self.db_manager.get_session() as session:
                row = session.execute(query).first()
        except OperationalError as e:
            logger.error(f"Availability read for event {event_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        if row is None:
            raise NotFoundError("Event", event_id)

        _, capacity_total, status, reserved = row
        return self._summary(event_id, capacity_total, int(reserved or 0), status)

    def reconcile(self, event_id: int) -> AvailabilitySummary:
        """Re-derive the ledger-governed status from a fresh aggregate."""
        try:
            with self.db_manager.get_transaction_session() as session:
                event = self.lock_event(session, event_id)
                reserved = self.reserved_qty(session, event_id)
                previous = event.status
                self.derive_status(event, reserved)
                summary = self._summary(event.id, event.capacity_total, reserved, event.status)
        except OperationalError as e:
            logger.error(f"Reconcile of event {event_id} failed in storage: {e}")
            raise StorageUnavailableError() from e

        if previous != summary.status:
            log_ledger_operation("reconcile", event_id, event_status=summary.status.value)
        return summary

    @staticmethod
    def _summary(event_id: int, capacity_total: int, reserved: int, status) -> AvailabilitySummary:
        available = max(0, capacity_total - reserved)
        return AvailabilitySummary(
            event_id=event_id,
            capacity_total=capacity_total,
            reserved_qty=reserved,
            available_qty=available,
            is_sold_out=available <= 0,
            status=status,
        )


# Global ledger instance
capacity_ledger = CapacityLedger()
