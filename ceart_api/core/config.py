"""
Configuration management for the CEART bookings service.
Uses Zero Python SDK for secure configuration when a token is available,
falling back to process environment variables.
"""

import os
import asyncio
import concurrent.futures
from urllib.parse import quote_plus
from typing import Dict, Any, List, Optional
import logging
from zero_python_sdk import zero

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ["taller", "exposición", "concierto", "teatro", "danza", "cine"]
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


class ZeroSecretsManager:
    """
    Zero secrets client using the official Zero Python SDK.
    """

    def __init__(self, zero_token: str, caller_name: str = "ceart"):
        self.zero_token = zero_token
        self.caller_name = caller_name
        self._cache: Dict[str, Any] = {}
        self._secrets = None

    async def _fetch_secrets(self):
        """Fetch secrets from Zero if not already cached."""
        if self._secrets is None:
            try:
                loop = asyncio.get_running_loop()
                with concurrent.futures.ThreadPoolExecutor() as executor:
                    self._secrets = await loop.run_in_executor(
                        executor,
                        lambda: zero(
                            token=self.zero_token,
                            pick=["ceart"],
                            caller_name=self.caller_name
                        ).fetch()
                    )
                logger.info("Successfully fetched secrets from Zero")
            except Exception as e:
                logger.error(f"Failed to fetch secrets from Zero: {e}")
                self._secrets = {}

    def _normalize_key(self, key: str) -> str:
        """Normalize a key to lowercase and replace underscores with hyphens."""
        return key.lower().replace("_", "-")

    async def get_secret(self, key: str) -> Optional[str]:
        """
        Get a secret value by key.

        Args:
            key: The secret key to retrieve

        Returns:
            Secret value or None if not found
        """
        try:
            key = self._normalize_key(key)
            if key in self._cache:
                return self._cache[key]

            await self._fetch_secrets()
            ceart_secrets = self._secrets.get("ceart", {})
            secret_value = ceart_secrets.get(key)

            if secret_value:
                self._cache[key] = secret_value

            return secret_value

        except Exception as e:
            logger.error(f"Failed to fetch secret {key}: {e}")
            return None

    async def close(self):
        """Close method for compatibility."""
        pass


class CeartConfig:
    """
    Service configuration manager.
    Every key is looked up in Zero first (when ZERO_TOKEN is set) and then
    in the environment variable of the same name.
    """

    def __init__(self):
        self.zero_token = os.getenv("ZERO_TOKEN")
        self.secrets_manager = ZeroSecretsManager(self.zero_token) if self.zero_token else None
        if self.secrets_manager is None:
            logger.info("ZERO_TOKEN not set, reading configuration from environment")

    async def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Resolve a configuration key."""
        if self.secrets_manager is not None:
            value = await self.secrets_manager.get_secret(key)
            if value:
                return value
        return os.getenv(key, default)

    async def get_database_url(self) -> str:
        """Get the database connection URL."""
        url = await self.get_value("DATABASE_URL")
        if url:
            return url

        host = await self.get_value("DB_HOST") or "localhost"
        port = await self.get_value("DB_PORT") or "5432"
        name = await self.get_value("DB_NAME") or "ceart"
        user = await self.get_value("DB_USER") or "ceart"
        password = await self.get_value("DB_PASSWORD") or "ceart"

        return f"postgresql://{user}:{quote_plus(password)}@{host}:{port}/{name}"

    async def get_redis_url(self) -> Optional[str]:
        """Get the Redis connection URL, or None when notifications are off."""
        url = await self.get_value("REDIS_URL")
        if url:
            return url

        host = await self.get_value("REDIS_HOST")
        if not host:
            return None
        port = await self.get_value("REDIS_PORT") or "6379"
        password = await self.get_value("REDIS_PASSWORD")
        use_tls = (await self.get_value("REDIS_USE_TLS") or "").lower() == "true"

        protocol = "rediss://" if use_tls else "redis://"

        if password:
            return f"{protocol}:{quote_plus(password)}@{host}:{port}"
        return f"{protocol}{host}:{port}"

    async def get_booking_config(self) -> Dict[str, Any]:
        """Get booking-specific configuration."""
        return {
            "enable_duplicate_prevention": (
                (await self.get_value("ENABLE_DUPLICATE_PREVENTION") or "true").lower() != "false"
            ),
        }

    async def get_default_categories(self) -> List[str]:
        """Get the category list used to seed an empty category store."""
        raw = await self.get_value("DEFAULT_CATEGORIES")
        if raw:
            return [item.strip() for item in raw.split(",") if item.strip()]
        return list(DEFAULT_CATEGORIES)

    async def get_cors_origins(self) -> List[str]:
        """Get CORS allowed origins."""
        raw = await self.get_value("CORS_ORIGINS")
        if raw:
            return [origin.strip() for origin in raw.split(",") if origin.strip()]
        return list(DEFAULT_CORS_ORIGINS)

    async def get_database_config(self) -> Dict[str, Any]:
        """Get database pool and session timeout configuration."""
        return {
            "pool_size": int(await self.get_value("DB_POOL_SIZE") or "10"),
            "max_overflow": int(await self.get_value("DB_MAX_OVERFLOW") or "20"),
            "pool_timeout": int(await self.get_value("DB_POOL_TIMEOUT") or "30"),
            "pool_recycle": int(await self.get_value("DB_POOL_RECYCLE") or "3600"),
            "lock_timeout_ms": int(await self.get_value("DB_LOCK_TIMEOUT_MS") or "5000"),
            "statement_timeout_ms": int(await self.get_value("DB_STATEMENT_TIMEOUT_MS") or "30000"),
        }

    async def get_log_level(self) -> str:
        return (await self.get_value("LOG_LEVEL") or "INFO").upper()

    async def close(self):
        """Close the secrets manager."""
        if self.secrets_manager is not None:
            await self.secrets_manager.close()


# Global config instance
config = CeartConfig()
