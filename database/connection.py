"""Database connection setup for Redis."""
from typing import Optional
import redis.asyncio as redis
from shared.config import settings


class DatabaseConnection:
    """Manages the shared Redis connection."""

    _redis_client: Optional[redis.Redis] = None

    @classmethod
    async def init_redis(cls) -> redis.Redis:
        """Initialize Redis connection."""
        if cls._redis_client is None:
            cls._redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True
            )
        return cls._redis_client

    @classmethod
    async def get_redis(cls) -> redis.Redis:
        """Get Redis client instance."""
        if cls._redis_client is None:
            await cls.init_redis()
        return cls._redis_client

    @classmethod
    async def close_connections(cls):
        """Close the Redis connection."""
        if cls._redis_client:
            await cls._redis_client.aclose()
            cls._redis_client = None


async def get_redis() -> redis.Redis:
    """Dependency for getting Redis client."""
    return await DatabaseConnection.get_redis()
