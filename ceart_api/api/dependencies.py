"""
Dependency injection for the API layer.
Tests override these to point the routes at their own database.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Any, Dict
import logging

from ceart_api.db.database import db_manager, get_db
from ceart_api.db.redis_client import redis_manager
from ceart_api.db.repositories import BookingRepository
from ceart_api.services.capacity_ledger import CapacityLedger, capacity_ledger
from ceart_api.services.category_service import CategoryService, category_service
from ceart_api.services.event_publisher import BookingEventPublisher, event_publisher
from ceart_api.services.event_service import EventService, event_service

logger = logging.getLogger(__name__)


def get_capacity_ledger() -> CapacityLedger:
    return capacity_ledger


def get_event_service() -> EventService:
    return event_service


def get_category_service() -> CategoryService:
    return category_service


def get_event_publisher() -> BookingEventPublisher:
    return event_publisher


def get_booking_repository(session: Session = Depends(get_db)) -> BookingRepository:
    """
    Get booking repository dependency.

    Args:
        session: Database session

    Returns:
        Booking repository instance
    """
    return BookingRepository(session)


def get_client_ip(request: Request) -> str:
    """Get client IP address, honouring proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


async def check_service_health() -> Dict[str, Any]:
    """
    Check the health of all service dependencies.

    Redis is optional: when it is not configured it reports "disabled" and
    does not affect the overall status.

    Returns:
        Dictionary with health status of all components
    """
    health_status = {
        "database": "unknown",
        "redis": "unknown",
        "overall": "unknown"
    }

    database_healthy = await run_in_threadpool(db_manager.health_check)
    health_status["database"] = "healthy" if database_healthy else "unhealthy"

    try:
        redis_healthy = await redis_manager.health_check()
        if redis_healthy is None:
            health_status["redis"] = "disabled"
        else:
            health_status["redis"] = "healthy" if redis_healthy else "unhealthy"
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        health_status["redis"] = "unhealthy"

    if health_status["database"] == "healthy" and health_status["redis"] in ("healthy", "disabled"):
        health_status["overall"] = "healthy"
    else:
        health_status["overall"] = "unhealthy"

    return health_status
