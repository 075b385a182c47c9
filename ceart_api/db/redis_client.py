"""
Redis client for booking notifications.
Publishing is optional: without a configured Redis URL the manager stays
disabled and every publish is a no-op.
"""

from typing import Optional
import logging

import redis.asyncio as redis
from redis.asyncio import Redis

from ceart_api.core.config import config

logger = logging.getLogger(__name__)


class RedisManager:
    """
    Redis manager used for pub/sub notifications.
    """

    def __init__(self):
        self.redis_client: Optional[Redis] = None
        self.enabled = False
        self._initialized = False

    async def initialize(self, redis_url: Optional[str] = None):
        """Initialize Redis connection if one is configured."""
        if self._initialized:
            return

        redis_url = redis_url or await config.get_redis_url()
        self._initialized = True

        if not redis_url:
            logger.info("Redis not configured, booking notifications disabled")
            return

        try:
            self.redis_client = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

            await self.redis_client.ping()
            self.enabled = True
            logger.info("Redis client initialized successfully")

        except Exception as e:
            logger.warning(f"Redis unavailable, booking notifications disabled: {e}")
            self.enabled = False

    async def close(self):
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            logger.info("Redis connection closed")
        self.redis_client = None
        self.enabled = False
        self._initialized = False

    async def publish(self, channel: str, message: str) -> int:
        """Publish a message; returns the number of receivers."""
        if not self.enabled:
            return 0

        try:
            return await self.redis_client.publish(channel, message)
        except Exception as e:
            logger.error(f"Redis publish error for channel {channel}: {e}")
            return 0

    async def health_check(self) -> Optional[bool]:
        """Check Redis connection health; None when Redis is not configured."""
        if not self.enabled:
            return None

        try:
            result = await self.redis_client.ping()
            return result is True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False


# Global Redis manager instance
redis_manager = RedisManager()
