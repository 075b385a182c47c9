"""
Event API endpoints: CRUD and capacity availability.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from starlette.concurrency import run_in_threadpool
from typing import Optional
import logging

from ceart_api.api.dependencies import get_capacity_ledger, get_event_service
from ceart_api.core.exceptions import LedgerError
from ceart_api.models.event import MAX_DB_INT, EventStatus
from ceart_api.schemas.event import (
    AvailabilitySummary,
    EventCreate,
    EventPatch,
    EventResponse,
    EventListResponse,
)
from ceart_api.services.capacity_ledger import CapacityLedger
from ceart_api.services.event_service import EventService, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=EventListResponse)
async def list_events(
    page: int = Query(1, ge=1, le=MAX_DB_INT, description="Page number"),
    page_size: int = Query(100, ge=1, le=MAX_PAGE_SIZE, description="Number of items per page"),
    status_filter: Optional[EventStatus] = Query(None, alias="status", description="Filter by status"),
    venue_id: Optional[int] = Query(None, gt=0, le=MAX_DB_INT, description="Filter by venue"),
    category: Optional[str] = Query(None, description="Filter by category"),
    service: EventService = Depends(get_event_service),
):
    """
    List events ordered by start time.

    Args:
        page: Page number
        page_size: Number of items per page
        status_filter: Optional status filter
        venue_id: Optional venue filter
        category: Optional category filter
        service: Event service

    Returns:
        Paginated list of events
    """
    try:
        events, total = await run_in_threadpool(
            service.list_events, page, page_size, status_filter, venue_id, category
        )
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Failed to list events: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve events"
        )

    total_pages = (total + page_size - 1) // page_size
    return EventListResponse(
        items=[EventResponse.model_validate(event) for event in events],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    service: EventService = Depends(get_event_service),
):
    """Create a new event."""
    event = await run_in_threadpool(service.create_event, event_data)
    return EventResponse.model_validate(event)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Event ID"),
    service: EventService = Depends(get_event_service),
):
    """Get a specific event by ID."""
    event = await run_in_threadpool(service.get_event, event_id)
    return EventResponse.model_validate(event)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    patch: EventPatch,
    event_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Event ID"),
    service: EventService = Depends(get_event_service),
):
    """
    Partially update an event.

    Lowering capacity below the units already booked is rejected. An
    explicit status is kept as set; otherwise the sold-out status follows
    the remaining capacity.
    """
    try:
        event = await run_in_threadpool(service.update_event, event_id, patch)
    except LedgerError:
        raise
    except Exception as e:
        logger.error(f"Failed to update event {event_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event"
        )
    return EventResponse.model_validate(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Event ID"),
    service: EventService = Depends(get_event_service),
):
    """Delete an event and its bookings."""
    await run_in_threadpool(service.delete_event, event_id)


@router.get("/{event_id}/availability", response_model=AvailabilitySummary)
async def get_event_availability(
    event_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Event ID"),
    ledger: CapacityLedger = Depends(get_capacity_ledger),
):
    """Capacity, reserved and available units of an event."""
    return await run_in_threadpool(ledger.availability, event_id)


@router.post("/{event_id}/reconcile", response_model=AvailabilitySummary)
async def reconcile_event(
    event_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Event ID"),
    ledger: CapacityLedger = Depends(get_capacity_ledger),
):
    """
    Re-derive the ledger-governed status from the confirmed bookings.

    Repairs the status after capacity or bookings were changed outside the
    service, for example by a migration or a manual fix in the database.
    """
    return await run_in_threadpool(ledger.reconcile, event_id)
