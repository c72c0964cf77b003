"""Async Redis client lifespan dependency.

``build_redis`` creates the client shared by the movie metadata cache,
verifies the connection and yields ``None`` when Redis is unreachable
or disabled, in which case the cache runs pass-through.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI
from redis.asyncio import Redis
from redis.exceptions import RedisError

from reelchat.configs.config import AppConfig, get_app_config
from reelchat.infra.lifespan import get_app

logger = logging.getLogger(__name__)


async def build_redis(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[Redis | None, None]:
    """Create a Redis client; yield ``None`` if unreachable."""
    if not config.cache.enabled:
        logger.info("Movie cache disabled -- running pass-through.")
        app.state.redis = None
        yield None
        return

    client = Redis.from_url(config.third_party.redis_uri, decode_responses=True)
    verified: Redis | None = None
    try:
        await client.ping()
        verified = client
    except (RedisError, OSError):
        logger.warning(
            "Redis unavailable -- movie cache running pass-through.",
            exc_info=True,
        )

    app.state.redis = verified
    yield verified

    await client.aclose()
