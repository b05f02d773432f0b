"""
Cafe Desk - Cafe settings API (name, table count)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import ALL_STAFF, OWNER_ONLY, require_roles
from cafedesk.db import table_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.catalog import CafeSettingsOut, CafeSettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=CafeSettingsOut)
async def get_cafe_settings(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await table_ops.get_cafe_settings(db)


@router.put("", response_model=CafeSettingsOut)
async def update_cafe_settings(
    payload: CafeSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*OWNER_ONLY)),
):
    """Changing total_tables adds or removes tables; occupied tables block a shrink."""
    return await table_ops.update_cafe_settings(
        db, cafe_name=payload.cafe_name, total_tables=payload.total_tables
    )
