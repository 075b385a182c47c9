"""
Venue directory endpoints.
"""

from fastapi import APIRouter, Depends, status, Path
from starlette.concurrency import run_in_threadpool
from typing import List

from ceart_api.api.dependencies import get_event_service
from ceart_api.models.event import MAX_DB_INT
from ceart_api.schemas.event import VenueCreate, VenueResponse
from ceart_api.services.event_service import EventService

router = APIRouter(prefix="/venues", tags=["venues"])


@router.get("", response_model=List[VenueResponse])
async def list_venues(service: EventService = Depends(get_event_service)):
    """List venues ordered by name."""
    venues = await run_in_threadpool(service.list_venues)
    return [VenueResponse.model_validate(venue) for venue in venues]


@router.post("", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def create_venue(venue_data: VenueCreate, service: EventService = Depends(get_event_service)):
    venue = await run_in_threadpool(service.create_venue, venue_data.name)
    return VenueResponse.model_validate(venue)


@router.delete("/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_venue(
    venue_id: int = Path(..., gt=0, le=MAX_DB_INT, description="Venue ID"),
    service: EventService = Depends(get_event_service),
):
    await run_in_threadpool(service.delete_venue, venue_id)
