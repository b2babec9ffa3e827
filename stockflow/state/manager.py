"""Redis-based state manager for session-scoped data."""

import json
from typing import Any

import redis.asyncio as redis

from stockflow.config import get_settings
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


class StateManager:
    """Thin async wrapper over a shared Redis connection."""

    def __init__(self, redis_url: str | None = None) -> None:
        self.redis_client: redis.Redis | None = None
        self.redis_url = redis_url or get_settings().redis_url

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    async def ping(self) -> bool:
        if not self.redis_client:
            await self.connect()

        return bool(await self.redis_client.ping())

    async def expire(self, key: str, ttl: int) -> None:
        """Set a TTL on an existing key."""
        if not self.redis_client:
            await self.connect()

        await self.redis_client.expire(key, ttl)

    async def hset(self, key: str, field: str, value: Any) -> None:
        """Set a hash field."""
        if not self.redis_client:
            await self.connect()

        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        await self.redis_client.hset(key, field, value)
        logger.debug("state_hset", key=key, field=field)

    async def hget(self, key: str, field: str) -> Any:
        """Get a hash field."""
        if not self.redis_client:
            await self.connect()

        value = await self.redis_client.hget(key, field)

        if value:
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value

        return None

    async def hgetall(self, key: str) -> dict[str, Any]:
        """Get all hash fields."""
        if not self.redis_client:
            await self.connect()

        data = await self.redis_client.hgetall(key)

        result = {}
        for field, value in data.items():
            try:
                result[field] = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                result[field] = value

        return result

    async def hpop(self, key: str, field: str) -> Any:
        """Atomically read and delete a hash field.

        Returns None when the field is missing or another client removed it
        first, so exactly one caller ever receives a given value.
        """
        if not self.redis_client:
            await self.connect()

        async with self.redis_client.pipeline(transaction=True) as pipe:
            pipe.hget(key, field)
            pipe.hdel(key, field)
            value, removed = await pipe.execute()

        if not removed or not value:
            return None

        logger.debug("state_hpop", key=key, field=field)
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    async def delete_matching(self, pattern: str) -> int:
        """Delete every key matching a glob pattern using SCAN."""
        if not self.redis_client:
            await self.connect()

        deleted = 0
        async for key in self.redis_client.scan_iter(match=pattern):
            deleted += await self.redis_client.delete(key)

        logger.info("state_keys_deleted", pattern=pattern, count=deleted)
        return deleted

