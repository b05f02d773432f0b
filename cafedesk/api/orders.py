"""
Cafe Desk - Orders API (staff)

Flow:
  1. JWT validated by middleware (request.state.user set)
  2. Role checked per endpoint (api/deps.py)
  3. Order engine runs the transition in one transaction (db/order_ops.py)
  4. Change published on the orders feed after commit
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import (
    ALL_STAFF,
    ORDER_MANAGERS,
    OWNER_ONLY,
    require_confirmation,
    require_roles,
)
from cafedesk.db import order_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.models.order import OrderSource, OrderStatus
from cafedesk.schemas.order import (
    AdvanceStatusRequest,
    BillingResponse,
    CompleteAndBillRequest,
    EditOrderRequest,
    InvoiceOut,
    OrderOut,
    PlaceOrderRequest,
    PlaceOrderResponse,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=list[OrderOut])
async def list_orders(
    status_filter: list[OrderStatus] | None = Query(None, alias="status"),
    table_number: int | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await order_ops.list_orders(db, statuses=status_filter, table_number=table_number, limit=limit)


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await order_ops.get_order(db, order_id)


@router.post("", response_model=PlaceOrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: PlaceOrderRequest,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ORDER_MANAGERS)),
):
    """
    Place a staff order for a table. If the table already has a live order
    the items are appended to it. Idempotency enforced by IdempotencyMiddleware.
    """
    cart = await order_ops.build_cart(db, payload.items)
    result = await order_ops.place_order(db, payload.table_number, cart, source=OrderSource.STAFF)
    message = (
        f"Added {cart.item_count} item(s) to the running order on table {payload.table_number}."
        if result.appended
        else f"New order created for table {payload.table_number}."
    )
    return PlaceOrderResponse(
        order=OrderOut.model_validate(result.order), appended=result.appended, message=message
    )


@router.put("/{order_id}/items", response_model=OrderOut)
async def edit_order(
    order_id: str,
    payload: EditOrderRequest,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ORDER_MANAGERS)),
):
    cart = await order_ops.build_cart(db, payload.items)
    return await order_ops.edit_order(db, order_id, cart)


@router.post("/{order_id}/advance", response_model=OrderOut)
async def advance_status(
    order_id: str,
    payload: AdvanceStatusRequest | None = None,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ORDER_MANAGERS)),
):
    expected = payload.expected_status if payload else None
    return await order_ops.advance_status(db, order_id, expected_status=expected)


@router.post("/{order_id}/complete", response_model=OrderOut)
async def mark_completed(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ORDER_MANAGERS)),
):
    return await order_ops.mark_completed(db, order_id)


@router.post(
    "/{order_id}/cancel",
    response_model=OrderOut,
    dependencies=[Depends(require_confirmation)],
)
async def cancel_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ORDER_MANAGERS)),
):
    return await order_ops.cancel_order(db, order_id)


@router.post("/{order_id}/bill", response_model=BillingResponse)
async def complete_and_bill(
    order_id: str,
    payload: CompleteAndBillRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_roles(*ALL_STAFF)),
):
    """Complete, take payment, free the table and issue the GST invoice."""
    result = await order_ops.complete_and_bill(
        db, order_id, payload.payment_mode, cashier_name=principal.name
    )
    return BillingResponse(
        order=OrderOut.model_validate(result.order),
        invoice=InvoiceOut.model_validate(result.invoice),
        created=result.created,
    )


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_confirmation)],
)
async def delete_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*OWNER_ONLY)),
):
    await order_ops.delete_order(db, order_id)
