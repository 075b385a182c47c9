"""
Error taxonomy for the CEART bookings service.
Errors abort the enclosing transaction and are mapped to HTTP responses
by the handlers registered in ceart_api.main.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for domain errors raised by services."""

    status_code = 500
    error_code = "LEDGER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(LedgerError):
    """Referenced event, booking, venue or category does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} {identifier} not found",
            {"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(LedgerError):
    """Operation conflicts with the current state of a record."""

    status_code = 409
    error_code = "CONFLICT"


class CapacityExceededError(ConflictError):
    error_code = "CAPACITY_EXCEEDED"

    def __init__(self, event_id: int, available_qty: int, requested_qty: int):
        if available_qty <= 0:
            message = f"Event {event_id} is sold out"
        else:
            message = f"Only {available_qty} available for event {event_id}"
        super().__init__(
            message,
            {
                "event_id": event_id,
                "available_qty": available_qty,
                "requested_qty": requested_qty,
            },
        )
        self.event_id = event_id
        self.available_qty = available_qty
        self.requested_qty = requested_qty


class EventClosedError(ConflictError):
    """Event is cancelled or was marked sold out by an administrator."""

    error_code = "EVENT_CLOSED"

    def __init__(self, event_id: int, status: str):
        super().__init__(
            f"Event {event_id} is not accepting bookings (status: {status})",
            {"event_id": event_id, "status": status},
        )
        self.event_id = event_id
        self.status = status


class DuplicateBookingError(ConflictError):
    error_code = "DUPLICATE_BOOKING"

    def __init__(self, event_id: int, email: str):
        super().__init__(
            f"A confirmed booking for {email} already exists for event {event_id}",
            {"event_id": event_id, "email": email},
        )


class InvalidInputError(LedgerError):
    """Input rejected before touching storage."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class StorageUnavailableError(LedgerError):
    """Storage failed; the operation had no effect and may be retried."""

    status_code = 503
    error_code = "STORAGE_UNAVAILABLE"

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message)
