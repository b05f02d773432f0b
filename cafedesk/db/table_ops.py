"""
Cafe Desk - Cafe table capacity and cafe settings

[CONFIG DATA] The table set is 1..N where N is cafe_settings.total_tables.
Growing and shrinking both write the table rows and the settings row in
one transaction.
"""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.core.config import get_settings
from cafedesk.core.errors import BusinessRuleViolation, NotFound, ValidationFailed
from cafedesk.db.database import commit_or_fail
from cafedesk.db.order_ops import get_order
from cafedesk.models.order import Order
from cafedesk.models.settings import SETTINGS_ROW_ID, CafeSettings
from cafedesk.models.table import CafeTable, TableStatus

settings = get_settings()
logger = logging.getLogger(__name__)


async def list_tables(db: AsyncSession) -> list[CafeTable]:
    result = await db.execute(
        select(CafeTable).order_by(CafeTable.id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_tables_with_orders(db: AsyncSession) -> list[tuple[CafeTable, Order | None]]:
    """Every table alongside the order it is currently bound to."""
    tables = await list_tables(db)
    bound_ids = [t.current_order_id for t in tables if t.current_order_id]
    orders: dict[str, Order] = {}
    if bound_ids:
        result = await db.execute(
            select(Order).where(Order.id.in_(bound_ids)).execution_options(populate_existing=True)
        )
        orders = {o.id: o for o in result.scalars().all()}
    return [(t, orders.get(t.current_order_id) if t.current_order_id else None) for t in tables]


async def valid_table_numbers(db: AsyncSession) -> list[int]:
    result = await db.execute(select(CafeTable.id).order_by(CafeTable.id))
    return list(result.scalars().all())


async def get_table(db: AsyncSession, table_number: int) -> CafeTable:
    table = await db.get(CafeTable, table_number, populate_existing=True)
    if table is None:
        raise NotFound(f"Table {table_number} does not exist.")
    return table


async def get_table_order(db: AsyncSession, table_number: int) -> Order | None:
    table = await get_table(db, table_number)
    if not table.current_order_id:
        return None
    return await get_order(db, table.current_order_id)


# ─── Settings ─────────────────────────────────────────────────────────────────

async def _settings_row(db: AsyncSession) -> tuple[CafeSettings, bool]:
    row = await db.get(CafeSettings, SETTINGS_ROW_ID, populate_existing=True)
    if row is not None:
        return row, False
    count = await db.scalar(select(func.count()).select_from(CafeTable))
    row = CafeSettings(
        id=SETTINGS_ROW_ID,
        cafe_name=settings.CAFE_NAME,
        total_tables=count or settings.DEFAULT_TOTAL_TABLES,
    )
    db.add(row)
    return row, True


async def get_cafe_settings(db: AsyncSession) -> CafeSettings:
    row, created = await _settings_row(db)
    if created:
        await commit_or_fail(db, "creating cafe settings")
    return row


async def ensure_tables(db: AsyncSession) -> int:
    """First boot: create the default table set and the settings row."""
    count = await db.scalar(select(func.count()).select_from(CafeTable))
    if count:
        await get_cafe_settings(db)
        return count
    for number in range(1, settings.DEFAULT_TOTAL_TABLES + 1):
        db.add(CafeTable(id=number, capacity=settings.DEFAULT_TABLE_CAPACITY, status=TableStatus.AVAILABLE.value))
    await commit_or_fail(db, "creating the default tables")
    await get_cafe_settings(db)
    logger.info("Created %d cafe tables", settings.DEFAULT_TOTAL_TABLES)
    return settings.DEFAULT_TOTAL_TABLES


async def resize_tables(db: AsyncSession, new_total: int) -> list[CafeTable]:
    """
    Grow by inserting current_max+1..new_total, or shrink by deleting
    everything above new_total. Shrinking past an occupied table is refused
    and nothing changes.
    """
    if new_total < 1:
        raise ValidationFailed("A cafe needs at least one table.")

    current_max = await db.scalar(select(func.max(CafeTable.id))) or 0

    if new_total > current_max:
        for number in range(current_max + 1, new_total + 1):
            db.add(CafeTable(id=number, capacity=settings.DEFAULT_TABLE_CAPACITY, status=TableStatus.AVAILABLE.value))
    elif new_total < current_max:
        occupied = await db.scalar(
            select(func.count())
            .select_from(CafeTable)
            .where(CafeTable.id > new_total, CafeTable.status == TableStatus.OCCUPIED.value)
        )
        if occupied:
            raise BusinessRuleViolation(
                f"Cannot reduce tables to {new_total}: {occupied} table(s) above that number are occupied."
            )
        await db.execute(
            delete(CafeTable).where(CafeTable.id > new_total).execution_options(synchronize_session=False)
        )

    row, _ = await _settings_row(db)
    row.total_tables = new_total
    await commit_or_fail(db, f"resizing to {new_total} tables")
    logger.info("Table count changed from %d to %d", current_max, new_total)
    return await list_tables(db)


async def update_cafe_settings(
    db: AsyncSession,
    cafe_name: str | None = None,
    total_tables: int | None = None,
) -> CafeSettings:
    if cafe_name is not None:
        if not cafe_name.strip():
            raise ValidationFailed("Cafe name cannot be empty.")
        row = await get_cafe_settings(db)
        row.cafe_name = cafe_name.strip()
        await commit_or_fail(db, "renaming the cafe")
    if total_tables is not None:
        await resize_tables(db, total_tables)
    return await get_cafe_settings(db)
