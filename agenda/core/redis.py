from datetime import datetime
from typing import Optional

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)


class RedisClient:
    """Redis client holding short-lived slot locks during booking."""

    def __init__(self, url: str, lock_seconds: int = 30):
        self.url = url
        self.lock_seconds = lock_seconds
        self.redis_pool: Optional[redis.ConnectionPool] = None

    async def init_redis(self):
        """Initialize Redis connection pool."""
        try:
            self.redis_pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                retry_on_timeout=True,
                socket_keepalive=True,
            )

            # Test connection
            async with redis.Redis(connection_pool=self.redis_pool) as r:
                await r.ping()
                logger.info("Redis connection established")

        except Exception as e:
            logger.error("Failed to connect to Redis", exc_info=e)
            raise

    async def get_redis(self) -> redis.Redis:
        """Get Redis client instance."""
        if not self.redis_pool:
            await self.init_redis()
        return redis.Redis(connection_pool=self.redis_pool)

    async def close(self) -> None:
        if self.redis_pool is not None:
            await self.redis_pool.disconnect()
            self.redis_pool = None

    @staticmethod
    def _slot_key(professional_id: int, start: datetime) -> str:
        return f"slot_lock:{professional_id}:{start.isoformat()}"

    async def acquire_slot_lock(self, professional_id: int, start: datetime) -> bool:
        """Lock a slot while a booking is written. False if already held."""
        client = await self.get_redis()
        acquired = await client.set(
            self._slot_key(professional_id, start),
            "locked",
            ex=self.lock_seconds,
            nx=True,
        )
        return bool(acquired)

    async def release_slot_lock(self, professional_id: int, start: datetime) -> bool:
        """Release a slot lock."""
        try:
            client = await self.get_redis()
            return await client.delete(self._slot_key(professional_id, start)) > 0
        except Exception as e:
            logger.error(
                "Redis DELETE error",
                professional_id=professional_id,
                start=start.isoformat(),
                exc_info=e,
            )
            return False
