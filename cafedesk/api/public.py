"""
Cafe Desk - Customer-facing API (no sign-in)

Menu browsing, gallery, table numbers and online ordering from a table.
An online order for a table that already has a live order is appended to it.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.db import catalog_ops, order_ops, table_ops
from cafedesk.db.database import get_db
from cafedesk.models.order import OrderSource
from cafedesk.schemas.catalog import CafeSettingsOut, GalleryImageOut, MenuItemOut
from cafedesk.schemas.order import OrderOut, PlaceOrderRequest, PlaceOrderResponse

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/menu", response_model=list[MenuItemOut])
async def public_menu(
    category: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await catalog_ops.list_menu(db, available_only=True, category=category)


@router.get("/menu/categories", response_model=list[str])
async def public_categories(db: AsyncSession = Depends(get_db)):
    return await catalog_ops.menu_categories(db, available_only=True)


@router.get("/gallery", response_model=list[GalleryImageOut])
async def public_gallery(db: AsyncSession = Depends(get_db)):
    images = await catalog_ops.list_gallery_images(db)
    return [
        GalleryImageOut.model_validate(image).model_copy(update={"category_name": name})
        for image, name in images
    ]


@router.get("/tables", response_model=list[int])
async def public_tables(db: AsyncSession = Depends(get_db)):
    return await table_ops.valid_table_numbers(db)


@router.get("/cafe", response_model=CafeSettingsOut)
async def public_cafe(db: AsyncSession = Depends(get_db)):
    return await table_ops.get_cafe_settings(db)


@router.post("/orders", response_model=PlaceOrderResponse, status_code=status.HTTP_201_CREATED)
async def place_online_order(payload: PlaceOrderRequest, db: AsyncSession = Depends(get_db)):
    """Idempotency-Key is honoured by IdempotencyMiddleware."""
    cart = await order_ops.build_cart(db, payload.items)
    result = await order_ops.place_order(db, payload.table_number, cart, source=OrderSource.CUSTOMER_ONLINE)
    message = (
        f"Items added to your running order on table {payload.table_number}."
        if result.appended
        else f"Order placed for table {payload.table_number}."
    )
    return PlaceOrderResponse(
        order=OrderOut.model_validate(result.order), appended=result.appended, message=message
    )
