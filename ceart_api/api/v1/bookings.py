"""
Booking API endpoints.
Every write goes through the capacity ledger; notifications are published
after the ledger commits.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from starlette.concurrency import run_in_threadpool
from typing import List
import logging

from ceart_api.api.dependencies import (
    get_booking_repository,
    get_capacity_ledger,
    get_client_ip,
    get_event_publisher,
)
from ceart_api.core.exceptions import LedgerError, NotFoundError
from ceart_api.db.repositories import BookingRepository
from ceart_api.models.event import MAX_DB_INT
from ceart_api.schemas.booking import (
    BookingCreate,
    BookingPatch,
    BookingResponse,
    BookingListResponse,
    BookingDeleteResponse,
)
from ceart_api.services.capacity_ledger import CapacityLedger
from ceart_api.services.event_publisher import BookingEventPublisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    ledger: CapacityLedger = Depends(get_capacity_ledger),
    publisher: BookingEventPublisher = Depends(get_event_publisher),
    client_ip: str = Depends(get_client_ip),
):
    """
    Reserve capacity on an event.

    Args:
        booking_data: Event, requester details and quantity
        ledger: Capacity ledger
        publisher: Booking event publisher
        client_ip: Requesting address, for the log

    Returns:
        The confirmed booking

    Raises:
        NotFoundError, ConflictError, InvalidInputError: mapped by the app's error handlers
    """
    try:
        booking = await run_in_threadpool(
            ledger.reserve,
            booking_data.event_id,
            booking_data.qty,
            booking_data.requester(),
        )
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Booking creation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking"
        )

    logger.info(f"Booking {booking.id} created from {client_ip}")
    await publisher.publish_booking_created(booking)
    return BookingResponse.model_validate(booking)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    page: int = Query(1, ge=1, le=MAX_DB_INT, description="Page number"),
    page_size: int = Query(100, ge=1, le=500, description="Number of items per page"),
    repository: BookingRepository = Depends(get_booking_repository),
):
    """List all bookings, newest first."""
    try:
        bookings, total = await run_in_threadpool(
            repository.get_all, (page - 1) * page_size, page_size
        )
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Failed to list bookings: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve bookings"
        )

    total_pages = (total + page_size - 1) // page_size
    return BookingListResponse(
        items=[BookingResponse.model_validate(booking) for booking in bookings],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


@router.get("/event/{event_id}", response_model=List[BookingResponse])
async def list_event_bookings(
    event_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Event ID"),
    repository: BookingRepository = Depends(get_booking_repository),
):
    """List the bookings of one event, newest first."""
    bookings = await run_in_threadpool(repository.get_by_event, event_id)
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Booking ID"),
    repository: BookingRepository = Depends(get_booking_repository),
):
    """Get a specific booking by ID."""
    booking = await run_in_threadpool(repository.get_by_id, booking_id)
    if booking is None:
        raise NotFoundError("Booking", booking_id)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    patch: BookingPatch,
    booking_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Booking ID"),
    ledger: CapacityLedger = Depends(get_capacity_ledger),
    publisher: BookingEventPublisher = Depends(get_event_publisher),
):
    """
    Cancel, reinstate, resize or edit a booking.

    Cancelling releases the booking's units and reopens a sold-out event;
    reinstating and growing are checked against remaining capacity.
    """
    try:
        booking = await run_in_threadpool(ledger.update_booking, booking_id, patch)
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Failed to update booking {booking_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking"
        )

    await publisher.publish_booking_updated(booking)
    return BookingResponse.model_validate(booking)


@router.delete("/{booking_id}", response_model=BookingDeleteResponse)
async def delete_booking(
    booking_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Booking ID"),
    ledger: CapacityLedger = Depends(get_capacity_ledger),
    publisher: BookingEventPublisher = Depends(get_event_publisher),
):
    """Delete a booking, releasing its units if it was confirmed."""
    try:
        booking = await run_in_threadpool(ledger.remove, booking_id)
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete booking {booking_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete booking"
        )

    await publisher.publish_booking_deleted(booking)
    return BookingDeleteResponse(
        message="Booking deleted",
        booking=BookingResponse.model_validate(booking),
    )
