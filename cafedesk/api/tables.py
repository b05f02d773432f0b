"""
Cafe Desk - Tables API (floor view)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import ALL_STAFF, require_roles
from cafedesk.db import table_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.order import OrderOut, TableOut

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("", response_model=list[TableOut])
async def list_tables(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    """Every table with the order it is bound to, if any."""
    rows = await table_ops.list_tables_with_orders(db)
    return [
        TableOut(
            id=table.id,
            capacity=table.capacity,
            status=table.status,
            current_order_id=table.current_order_id,
            order=OrderOut.model_validate(order) if order is not None else None,
        )
        for table, order in rows
    ]


@router.get("/{table_number}/order", response_model=OrderOut | None)
async def table_order(
    table_number: int,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await table_ops.get_table_order(db, table_number)
