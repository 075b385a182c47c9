"""
Main API router.
Combines all API endpoints and provides the health check.
"""

from fastapi import APIRouter
import logging

from ceart_api.api.dependencies import check_service_health
from ceart_api.api.v1.bookings import router as bookings_router
from ceart_api.api.v1.categories import router as categories_router
from ceart_api.api.v1.events import router as events_router
from ceart_api.api.v1.venues import router as venues_router
from ceart_api.schemas.common import HealthCheckResponse

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"

router = APIRouter(prefix="/api/v1")

router.include_router(venues_router)
router.include_router(events_router)
router.include_router(bookings_router)
router.include_router(categories_router)


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        Service health status
    """
    try:
        health_status = await check_service_health()
        return HealthCheckResponse(
            status=health_status["overall"],
            version=SERVICE_VERSION,
            database_status=health_status["database"],
            redis_status=health_status["redis"],
        )

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return HealthCheckResponse(
            status="unhealthy",
            version=SERVICE_VERSION,
            database_status="unknown",
            redis_status="unknown",
        )
