"""Redis client lifecycle management."""

import redis.asyncio as redis
import structlog

from localchat.core.settings import RedisConfig

logger = structlog.get_logger()


async def create_redis(config: RedisConfig) -> redis.Redis:  # type: ignore[type-arg]
    """Open a Redis connection and verify it answers."""
    client = redis.from_url(config.url, decode_responses=True)
    await client.ping()
    logger.info("Redis connected", url=config.url)
    return client


async def close_redis(client: redis.Redis | None) -> None:  # type: ignore[type-arg]
    """Close a Redis connection opened by create_redis."""
    if client is not None:
        await client.aclose()
