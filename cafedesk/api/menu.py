"""
Cafe Desk - Menu management API
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import BACK_OFFICE, require_roles
from cafedesk.db import catalog_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.catalog import MenuItemCreate, MenuItemOut, MenuItemUpdate

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("", response_model=list[MenuItemOut])
async def list_menu(
    category: str | None = Query(None),
    available_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    return await catalog_ops.list_menu(db, available_only=available_only, category=category)


@router.get("/categories", response_model=list[str])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    return await catalog_ops.menu_categories(db)


@router.post("", response_model=MenuItemOut, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    payload: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    return await catalog_ops.create_menu_item(db, **payload.model_dump())


@router.patch("/{item_id}", response_model=MenuItemOut)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    return await catalog_ops.update_menu_item(db, item_id, **payload.model_dump(exclude_unset=True))


@router.post("/{item_id}/toggle", response_model=MenuItemOut)
async def toggle_availability(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    """Flip sold-out / available."""
    return await catalog_ops.toggle_availability(db, item_id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    await catalog_ops.delete_menu_item(db, item_id)
