"""
Cafe Desk - Async SQLAlchemy engine, declarative base and session dependency
"""
import logging
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from cafedesk.core.config import get_settings
from cafedesk.core.errors import StoreUnavailable

settings = get_settings()
logger = logging.getLogger(__name__)

engine = create_async_engine(settings.database_url, pool_pre_ping=True, echo=settings.DEBUG)

async_session = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


async def commit_or_fail(db: AsyncSession, action: str) -> None:
    """Commit the unit of work; on a store error roll back and raise StoreUnavailable."""
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Store write failed while %s", action)
        raise StoreUnavailable(f"Could not save changes while {action}. Nothing was applied.") from exc
