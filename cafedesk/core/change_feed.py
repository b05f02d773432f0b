"""
Cafe Desk - Row change feed (Redis pub/sub)

Committed order mutations are published on ``feed:<table>`` as
``{"table": ..., "event": "INSERT" | "UPDATE" | "DELETE", "new": {...row}}``
so the admin console can patch its view or re-fetch.
"""
import json
import logging
from typing import Any

from redis.exceptions import RedisError

from cafedesk.core.config import get_settings
from cafedesk.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

FEED_EVENTS = {"INSERT", "UPDATE", "DELETE"}


def channel_for(table: str) -> str:
    return f"{settings.FEED_CHANNEL_PREFIX}{table}"


async def publish_change(table: str, event: str, row: dict[str, Any]) -> bool:
    """
    Publish one change event. Called only after the write has committed;
    a broken feed never undoes or fails the business operation.
    """
    if event not in FEED_EVENTS:
        raise ValueError(f"Unknown feed event '{event}'")

    channel = channel_for(table)
    message = json.dumps({"table": table, "event": event, "new": row}, default=str)
    try:
        await get_redis().publish(channel, message)
    except (RedisError, OSError) as exc:
        logger.warning("Change feed publish to %s failed: %s", channel, exc)
        return False
    return True
