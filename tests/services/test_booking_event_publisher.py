"""
Tests for BookingEventPublisher.
"""

import json
import pytest
from unittest.mock import AsyncMock

from ceart_api.db.redis_client import RedisManager
from ceart_api.services.event_publisher import BookingEventPublisher


@pytest.fixture
def confirmed_booking(ledger, make_event, requester):
    event = make_event(capacity_total=1)
    return ledger.reserve(event.id, 1, requester(email="ana@example.com"))


class TestBookingEventPublisher:
    """Test message publication."""

    @pytest.mark.asyncio
    async def test_publish_created(self, mock_redis_manager, confirmed_booking):
        publisher = BookingEventPublisher(mock_redis_manager)

        assert await publisher.publish_booking_created(confirmed_booking) is True

        channel, payload = mock_redis_manager.publish.call_args.args
        message = json.loads(payload)
        assert channel == "ceart:bookings:created"
        assert message["type"] == "BookingCreated"
        assert message["booking_id"] == confirmed_booking.id
        assert message["event_status"] == "soldout"
        assert message["booking_data"]["email"] == "ana@example.com"

    @pytest.mark.asyncio
    async def test_publish_updated_and_deleted_channels(self, mock_redis_manager, confirmed_booking):
        publisher = BookingEventPublisher(mock_redis_manager, channel_prefix="test")

        await publisher.publish_booking_updated(confirmed_booking)
        await publisher.publish_booking_deleted(confirmed_booking)

        channels = [call.args[0] for call in mock_redis_manager.publish.call_args_list]
        assert channels == ["test:updated", "test:deleted"]

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self, mock_redis_manager, confirmed_booking):
        mock_redis_manager.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        publisher = BookingEventPublisher(mock_redis_manager)

        assert await publisher.publish_booking_created(confirmed_booking) is False

    @pytest.mark.asyncio
    async def test_disabled_redis_is_noop(self, confirmed_booking):
        """Without a configured Redis the manager publishes nothing."""
        manager = RedisManager()
        await manager.initialize(redis_url=None)
        publisher = BookingEventPublisher(manager)

        assert manager.enabled is False
        assert await manager.publish("channel", "message") == 0
        assert await manager.health_check() is None
        assert await publisher.publish_booking_created(confirmed_booking) is True
