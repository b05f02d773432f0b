"""
Cafe Desk - Staff notifications (bell menu)
"""
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.core.config import get_settings
from cafedesk.core.errors import NotFound
from cafedesk.db.database import commit_or_fail
from cafedesk.models.notification import AdminNotification

settings = get_settings()


async def recent_notifications(db: AsyncSession, limit: int | None = None) -> list[AdminNotification]:
    result = await db.execute(
        select(AdminNotification)
        .order_by(AdminNotification.created_at.desc())
        .limit(limit or settings.NOTIFICATION_FEED_LIMIT)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def unread_count(db: AsyncSession) -> int:
    count = await db.scalar(
        select(func.count()).select_from(AdminNotification).where(AdminNotification.is_read.is_(False))
    )
    return count or 0


async def mark_read(db: AsyncSession, notification_id: str) -> AdminNotification:
    note = await db.get(AdminNotification, notification_id)
    if note is None:
        raise NotFound("Notification not found.")
    note.is_read = True
    await commit_or_fail(db, "marking a notification read")
    return note


async def mark_all_read(db: AsyncSession) -> int:
    result = await db.execute(
        update(AdminNotification)
        .where(AdminNotification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await commit_or_fail(db, "marking notifications read")
    return result.rowcount
