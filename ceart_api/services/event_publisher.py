"""
Booking event publisher.
Publishes booking lifecycle messages to Redis after the ledger has committed.
Publishing never changes the outcome of a booking operation.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict

from ceart_api.db.redis_client import RedisManager, redis_manager

logger = logging.getLogger(__name__)


class BookingEventPublisher:
    """
    Publishes booking events to Redis channels.
    """

    def __init__(self, redis: RedisManager = redis_manager, channel_prefix: str = "ceart:bookings"):
        self.redis_manager = redis
        self.channel_prefix = channel_prefix

    def _build_message(self, message_type: str, booking) -> Dict[str, Any]:
        event_status = booking.event_status
        return {
            "type": message_type,
            "booking_id": booking.id,
            "event_id": booking.event_id,
            "event_status": event_status.value if event_status else None,
            "booking_data": booking.to_dict(),
            "published_at": datetime.now().isoformat(),
        }

    async def _publish(self, action: str, message_type: str, booking) -> bool:
        try:
            channel = f"{self.channel_prefix}:{action}"
            message = self._build_message(message_type, booking)
            receivers = await self.redis_manager.publish(channel, json.dumps(message))
            logger.debug(f"Published {message_type} for booking {booking.id} to {receivers} receivers")
            return True
        except Exception as e:
            logger.error(f"Failed to publish {message_type}: {e}")
            return False

    async def publish_booking_created(self, booking) -> bool:
        return await self._publish("created", "BookingCreated", booking)

    async def publish_booking_updated(self, booking) -> bool:
        return await self._publish("updated", "BookingUpdated", booking)

    async def publish_booking_deleted(self, booking) -> bool:
        return await self._publish("deleted", "BookingDeleted", booking)


# Global publisher instance
event_publisher = BookingEventPublisher()
