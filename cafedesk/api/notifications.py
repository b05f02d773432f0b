"""
Cafe Desk - Staff notifications: bell feed + live order stream (SSE)

Architecture:
  - The order engine publishes every committed change to Redis channel feed:orders
  - The stream endpoint subscribes and relays each change to the browser
  - Bell notifications (online orders) are rows in admin_notifications
"""
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import BACK_OFFICE, require_roles
from cafedesk.core.change_feed import channel_for
from cafedesk.core.config import get_settings
from cafedesk.core.redis_client import get_redis
from cafedesk.db import notification_ops
from cafedesk.db.database import get_db
from cafedesk.db.order_ops import FEED_TABLE
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.staff import NotificationOut

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    limit: int | None = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    notes = await notification_ops.recent_notifications(db, limit=limit)
    return {
        "unread": await notification_ops.unread_count(db),
        "notifications": [NotificationOut.model_validate(n).model_dump(mode="json") for n in notes],
    }


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    return await notification_ops.mark_read(db, notification_id)


@router.post("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    updated = await notification_ops.mark_all_read(db)
    return {"updated": updated}


async def _sse_generator(request: Request) -> AsyncGenerator[str, None]:
    """Subscribe to the orders feed and yield SSE events."""
    redis = get_redis()
    channel_name = channel_for(FEED_TABLE)
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel_name)

    try:
        yield ": connected to order feed\n\n"
        # Set retry interval for the client
        yield f"retry: {settings.SSE_RETRY_MILLISECONDS}\n\n"

        while True:
            if await request.is_disconnected():
                break

            # blocks until a change arrives or the keepalive interval passes
            message = await pubsub.get_message(
                ignore_subscribe_messages=True, timeout=settings.SSE_KEEPALIVE_INTERVAL_SECONDS
            )
            if message and message["type"] == "message":
                try:
                    payload = json.loads(message["data"])
                except ValueError:
                    logger.warning("Dropping malformed feed message on %s", channel_name)
                    continue
                yield f"event: order_change\ndata: {json.dumps(payload)}\n\n"
            else:
                yield ": keepalive\n\n"
    finally:
        await pubsub.unsubscribe(channel_name)
        await pubsub.aclose()


@router.get("/stream")
async def stream_order_changes(
    request: Request,
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    """
    SSE endpoint for the live order board. Each event carries
    {"table", "event", "new"} for one committed order change.
    """
    return StreamingResponse(
        _sse_generator(request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable Nginx buffering
            "Connection": "keep-alive",
        },
    )
