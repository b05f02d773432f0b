"""
Cafe Desk - Order lifecycle engine

    new -> preparing -> ready -> served -> completed
    cancelled is reachable from any non-terminal state

Every operation below runs in one session transaction and commits once.
Status writes are conditional UPDATEs on the status the engine just read,
so a concurrent writer turns into a ConcurrencyConflict instead of a silent
overwrite. A cafe table is only ever occupied or freed in the same
transaction as the order transition that causes it.
"""
import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cafedesk.core.billing import INVOICE_NUMBER_DIGITS, compute_invoice_totals, invoice_number_for, money
from cafedesk.core.change_feed import publish_change
from cafedesk.core.config import get_settings
from cafedesk.core.errors import (
    BusinessRuleViolation,
    ConcurrencyConflict,
    InvalidTransition,
    NotFound,
    ValidationFailed,
)
from cafedesk.db.database import commit_or_fail
from cafedesk.models.invoice import Invoice, Payment
from cafedesk.models.menu import MenuItem
from cafedesk.models.notification import AdminNotification, NotificationType
from cafedesk.models.order import (
    NEXT_STATUS,
    SETTLEMENT_MODES,
    TERMINAL_STATUSES,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMode,
    now_utc,
)
from cafedesk.models.table import CafeTable, TableStatus
from cafedesk.ordering.cart import Cart
from cafedesk.schemas.order import CartLineIn, OrderOut

settings = get_settings()
logger = logging.getLogger(__name__)

FEED_TABLE = "orders"


@dataclass
class PlacementResult:
    order: Order
    appended: bool


@dataclass
class BillingResult:
    order: Order
    invoice: Invoice
    created: bool


# ─── Helpers ──────────────────────────────────────────────────────────────────

def order_row(order: Order) -> dict:
    """The order as the change feed and the API see it."""
    return OrderOut.model_validate(order).model_dump(mode="json")


async def get_order(db: AsyncSession, order_id: str) -> Order:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound(f"Order {order_id} not found.")
    return order


async def list_orders(
    db: AsyncSession,
    statuses: Iterable[OrderStatus] | None = None,
    table_number: int | None = None,
    limit: int = 100,
) -> list[Order]:
    query = (
        select(Order)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    if statuses:
        query = query.where(Order.status.in_([s.value for s in statuses]))
    if table_number is not None:
        query = query.where(Order.table_number == table_number)
    result = await db.execute(query)
    return list(result.scalars().all())


async def build_cart(db: AsyncSession, lines: Iterable[CartLineIn]) -> Cart:
    """
    Resolve requested lines against the live menu. Unit prices always come
    from the menu row, never from the caller.
    """
    lines = list(lines)
    cart = Cart()
    if not lines:
        return cart

    ids = {line.menu_item_id for line in lines}
    result = await db.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
    menu = {item.id: item for item in result.scalars().all()}

    for line in lines:
        item = menu.get(line.menu_item_id)
        if item is None:
            raise ValidationFailed(f"Menu item {line.menu_item_id} does not exist.")
        if not item.is_available:
            raise ValidationFailed(f"'{item.name}' is not available right now.")
        cart.add(item.id, item.name, item.price, line.quantity)
    return cart


def _line_items(order_id: str, cart: Cart) -> list[OrderItem]:
    return [
        OrderItem(
            id=str(uuid.uuid4()),
            order_id=order_id,
            menu_item_id=line.menu_item_id,
            item_name=line.name,
            quantity=line.quantity,
            price_at_order=line.unit_price,
        )
        for line in cart.lines
    ]


async def _conditional_update(db: AsyncSession, order: Order, expected: OrderStatus, **values) -> None:
    """UPDATE orders ... WHERE id = :id AND status = :expected, bumping version_id."""
    order_id = order.id
    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == expected.value)
        .values(version_id=Order.version_id + 1, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # rollback expires every loaded instance; only local values below
        await db.rollback()
        raise ConcurrencyConflict(
            f"Order {order_id[:8]} was changed by someone else. Reload and try again."
        )


async def _free_table(db: AsyncSession, order_id: str) -> None:
    await db.execute(
        update(CafeTable)
        .where(CafeTable.current_order_id == order_id)
        .values(status=TableStatus.AVAILABLE.value, current_order_id=None)
        .execution_options(synchronize_session=False)
    )


async def _notify_staff(db: AsyncSession, order: Order, kind: NotificationType, added=None) -> None:
    if kind == NotificationType.NEW_ORDER:
        title = f"New Order - Table {order.table_number}"
        message = f"₹{money(order.total_price):.0f} order received (Online)"
    else:
        title = f"Items Added - Table {order.table_number}"
        message = f"+₹{money(added):.0f} added. Total: ₹{money(order.total_price + added):.0f}"
    db.add(AdminNotification(title=title, message=message, type=kind.value, order_id=order.id))


# ─── createOrder ──────────────────────────────────────────────────────────────

class StaleOrder(Exception):
    """The running order's version_id moved between our read and the append."""


def _append_retry_delay(attempt: int) -> float:
    base = settings.APPEND_RETRY_BASE_DELAY_MS / 1000.0
    ceiling = settings.APPEND_RETRY_MAX_DELAY_MS / 1000.0
    return min(base * (2 ** attempt), ceiling) + random.uniform(0, base)


async def place_order(
    db: AsyncSession,
    table_number: int,
    cart: Cart,
    source: OrderSource = OrderSource.STAFF,
) -> PlacementResult:
    """
    Create an order for a table, or append to the order already running on it.

    The table row is read FOR UPDATE, so two placements for the same table
    serialize. The append itself is guarded by version_id; a lost race is
    replayed from a fresh read with backoff, and after APPEND_RETRY_ATTEMPTS
    the caller gets a ConcurrencyConflict.
    """
    if cart.is_empty:
        raise ValidationFailed("Cannot place an order with an empty cart.")

    attempts = settings.APPEND_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            return await _place_once(db, table_number, cart, source)
        except StaleOrder as exc:
            if attempt == attempts:
                logger.error("Table %d: append still racing after %d attempts", table_number, attempts)
                raise ConcurrencyConflict(
                    f"Table {table_number} is being updated from another terminal. Please try again."
                ) from exc
            delay = _append_retry_delay(attempt)
            logger.warning(
                "Table %d: %s Retrying in %.3fs (attempt %d/%d)", table_number, exc, delay, attempt, attempts
            )
            await asyncio.sleep(delay)


async def _place_once(
    db: AsyncSession,
    table_number: int,
    cart: Cart,
    source: OrderSource,
) -> PlacementResult:
    result = await db.execute(
        select(CafeTable)
        .where(CafeTable.id == table_number)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    table: CafeTable | None = result.scalar_one_or_none()
    if table is None:
        raise ValidationFailed(f"Table {table_number} does not exist.")

    bound: Order | None = None
    if table.current_order_id:
        bound = await db.get(Order, table.current_order_id, populate_existing=True)

    if bound is not None and not bound.is_terminal:
        bound_id = bound.id
        added = cart.total
        result = await db.execute(
            update(Order)
            .where(
                Order.id == bound_id,
                Order.version_id == bound.version_id,
                Order.status.notin_([s.value for s in TERMINAL_STATUSES]),
            )
            .values(total_price=Order.total_price + added, version_id=Order.version_id + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise StaleOrder(f"Order {bound_id[:8]} changed while items were being appended.")

        db.add_all(_line_items(bound_id, cart))
        if source == OrderSource.CUSTOMER_ONLINE:
            await _notify_staff(db, bound, NotificationType.ITEM_ADDED, added=added)
        await commit_or_fail(db, f"adding items to table {table_number}")

        order = await get_order(db, bound_id)
        logger.info("Appended %d line(s) to order %s on table %d", len(cart), order.id, table_number)
        await publish_change(FEED_TABLE, "UPDATE", order_row(order))
        return PlacementResult(order=order, appended=True)

    if table.is_occupied:
        # Occupied by an order that is already terminal (or gone): reclaim it.
        logger.warning("Table %d was bound to finished order %s; reclaiming", table_number, table.current_order_id)

    order_id = str(uuid.uuid4())
    order = Order(
        id=order_id,
        table_number=table_number,
        status=OrderStatus.NEW.value,
        total_price=cart.total,
        is_paid=False,
        payment_mode=PaymentMode.PENDING.value,
        order_source=source.value,
    )
    db.add(order)
    db.add_all(_line_items(order_id, cart))
    table.status = TableStatus.OCCUPIED.value
    table.current_order_id = order_id
    if source == OrderSource.CUSTOMER_ONLINE:
        await _notify_staff(db, order, NotificationType.NEW_ORDER)
    await commit_or_fail(db, f"placing an order for table {table_number}")

    order = await get_order(db, order_id)
    logger.info("Order %s placed on table %d (%s)", order.id, table_number, source.value)
    await publish_change(FEED_TABLE, "INSERT", order_row(order))
    return PlacementResult(order=order, appended=False)


# ─── Status transitions ───────────────────────────────────────────────────────

async def advance_status(
    db: AsyncSession,
    order_id: str,
    expected_status: OrderStatus | None = None,
) -> Order:
    """
    Move an order one step along new -> preparing -> ready -> served -> completed.

    When expected_status is given and the order has already moved on, the
    call fails with ConcurrencyConflict: of two terminals clicking the same
    button, the second one is told, not silently ignored.
    """
    order = await get_order(db, order_id)
    current = OrderStatus(order.status)

    if expected_status is not None and current != expected_status:
        raise ConcurrencyConflict(
            f"Order {order.id[:8]} is already {current.value}, not {expected_status.value}."
        )
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Order {order.id[:8]} is {current.value} and cannot advance.")

    target = NEXT_STATUS[current]
    await _conditional_update(db, order, current, status=target.value, updated_at=now_utc())
    if target == OrderStatus.COMPLETED:
        await _free_table(db, order.id)
    await commit_or_fail(db, f"moving order {order.id[:8]} to {target.value}")

    order = await get_order(db, order_id)
    logger.info("Order %s advanced %s -> %s", order.id, current.value, target.value)
    await publish_change(FEED_TABLE, "UPDATE", order_row(order))
    return order


async def mark_completed(db: AsyncSession, order_id: str) -> Order:
    """Manual override straight to completed. No payment, no invoice."""
    order = await get_order(db, order_id)
    current = OrderStatus(order.status)
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Order {order.id[:8]} is already {current.value}.")

    await _conditional_update(db, order, current, status=OrderStatus.COMPLETED.value, updated_at=now_utc())
    await _free_table(db, order.id)
    await commit_or_fail(db, f"completing order {order.id[:8]}")

    order = await get_order(db, order_id)
    logger.info("Order %s marked completed from %s", order.id, current.value)
    await publish_change(FEED_TABLE, "UPDATE", order_row(order))
    return order


async def cancel_order(db: AsyncSession, order_id: str) -> Order:
    """
    Only a new (never prepared) order or an already paid one may be
    cancelled; food that was prepared and not paid for must be billed.
    """
    order = await get_order(db, order_id)
    current = OrderStatus(order.status)
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Order {order.id[:8]} is already {current.value}.")
    if current != OrderStatus.NEW and not order.is_paid:
        raise BusinessRuleViolation(
            f"Order {order.id[:8]} is {current.value} and unpaid. "
            "Only new or already paid orders can be cancelled."
        )

    await _conditional_update(db, order, current, status=OrderStatus.CANCELLED.value, updated_at=now_utc())
    await _free_table(db, order.id)
    await commit_or_fail(db, f"cancelling order {order.id[:8]}")

    order = await get_order(db, order_id)
    logger.info("Order %s cancelled (was %s)", order.id, current.value)
    await publish_change(FEED_TABLE, "UPDATE", order_row(order))
    return order


# ─── completeAndFreeTable ─────────────────────────────────────────────────────

async def find_invoice(db: AsyncSession, order_id: str) -> Invoice | None:
    """The invoice billed for this order, if any. At most one per order."""
    result = await db.execute(select(Invoice).where(Invoice.order_id == order_id))
    return result.scalar_one_or_none()


async def get_invoice(db: AsyncSession, invoice_number: str) -> Invoice:
    result = await db.execute(
        select(Invoice).where(Invoice.invoice_number == invoice_number.strip().upper())
    )
    invoice = result.scalar_one_or_none()
    if invoice is None:
        raise NotFound(f"Invoice {invoice_number} not found.")
    return invoice


async def list_invoices(db: AsyncSession, limit: int = 100) -> list[Invoice]:
    result = await db.execute(select(Invoice).order_by(Invoice.generated_at.desc()).limit(limit))
    return list(result.scalars().all())


async def _free_invoice_number(db: AsyncSession, order_id: str) -> str:
    """
    INV- plus the first 8 hex digits of the order id. When an older order
    already holds that number, four more digits are taken until it is free.
    """
    hex_digits = len(order_id.replace("-", ""))
    for digits in range(INVOICE_NUMBER_DIGITS, hex_digits + 4, 4):
        number = invoice_number_for(order_id, digits)
        holder = await db.scalar(select(Invoice.order_id).where(Invoice.invoice_number == number))
        if holder is None or holder == order_id:
            return number
        logger.info("Invoice number %s belongs to order %s; lengthening", number, holder)
    raise BusinessRuleViolation(f"No free invoice number for order {order_id}.")


async def _write_invoice(
    db: AsyncSession,
    order: Order,
    payment_mode: PaymentMode,
    cashier_name: str,
) -> tuple[Invoice, bool]:
    """Insert the order's invoice and its payment unless the order is already invoiced."""
    order_id = order.id
    existing = await find_invoice(db, order_id)
    if existing is not None:
        return existing, False

    number = await _free_invoice_number(db, order_id)
    totals = compute_invoice_totals(order.total_price)
    invoice = Invoice(
        id=str(uuid.uuid4()),
        invoice_number=number,
        order_id=order_id,
        table_number=order.table_number,
        subtotal=totals.subtotal,
        cgst=totals.cgst,
        sgst=totals.sgst,
        rounding=totals.rounding,
        total=totals.total,
        payment_mode=payment_mode.value,
        cashier_name=cashier_name,
        items=[
            {
                "name": item.item_name,
                "quantity": item.quantity,
                "price": str(money(item.price_at_order)),
                "total": str(money(item.line_total)),
            }
            for item in order.items
        ],
    )
    try:
        async with db.begin_nested():
            db.add(invoice)
            await db.flush()
    except IntegrityError:
        # Another terminal invoiced this order first; theirs stands.
        stored = await find_invoice(db, order_id)
        if stored is None:
            raise ConcurrencyConflict(
                f"Invoice number {number} was taken while billing order {order_id[:8]}. Bill again."
            )
        logger.info("Order %s was invoiced concurrently as %s, keeping it", order_id, stored.invoice_number)
        return stored, False

    db.add(Payment(invoice_id=invoice.id, payment_mode=payment_mode.value, paid_amount=totals.total))
    return invoice, True


async def complete_and_bill(
    db: AsyncSession,
    order_id: str,
    payment_mode: PaymentMode | str,
    cashier_name: str = "Admin",
) -> BillingResult:
    """
    Settle an order in one transaction: completed + paid, table freed,
    invoice and payment written. Billing an order that already has an
    invoice returns that invoice and writes nothing.
    """
    try:
        mode = PaymentMode(payment_mode)
    except ValueError:
        raise ValidationFailed(f"Unknown payment mode '{payment_mode}'.")
    if mode not in SETTLEMENT_MODES:
        raise ValidationFailed("Payment mode must be cash, upi or card.")

    order = await get_order(db, order_id)
    current = OrderStatus(order.status)

    if current == OrderStatus.CANCELLED:
        raise InvalidTransition(f"Order {order_id[:8]} was cancelled and cannot be billed.")

    if current == OrderStatus.COMPLETED:
        existing = await find_invoice(db, order_id)
        if existing is not None:
            logger.info("Order %s already billed as %s", order_id, existing.invoice_number)
            return BillingResult(order=order, invoice=existing, created=False)
        if not order.is_paid:
            # Completed through the manual shortcut; take the payment now.
            result = await db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == current.value, Order.is_paid.is_(False))
                .values(is_paid=True, payment_mode=mode.value, version_id=Order.version_id + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                raise ConcurrencyConflict(f"Order {order_id[:8]} was billed by someone else.")
    else:
        await _conditional_update(
            db, order, current,
            status=OrderStatus.COMPLETED.value,
            is_paid=True,
            payment_mode=mode.value,
            updated_at=now_utc(),
        )
        await _free_table(db, order_id)

    invoice, created = await _write_invoice(db, order, mode, cashier_name)
    await commit_or_fail(db, f"billing order {order_id[:8]}")

    order = await get_order(db, order_id)
    logger.info(
        "Order %s billed: invoice %s total %s via %s", order_id, invoice.invoice_number, invoice.total, mode.value
    )
    await publish_change(FEED_TABLE, "UPDATE", order_row(order))
    return BillingResult(order=order, invoice=invoice, created=created)


# ─── editOrder / deleteOrder ──────────────────────────────────────────────────

async def edit_order(db: AsyncSession, order_id: str, cart: Cart) -> Order:
    """Replace every line item and recompute the total. Status is untouched."""
    if cart.is_empty:
        raise ValidationFailed("An order needs at least one item. Cancel it instead.")

    order = await get_order(db, order_id)
    current = OrderStatus(order.status)
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Order {order.id[:8]} is {current.value} and can no longer be edited.")

    await _conditional_update(db, order, current, total_price=cart.total)
    order.items.clear()
    order.items.extend(_line_items(order.id, cart))
    await commit_or_fail(db, f"editing order {order.id[:8]}")

    order = await get_order(db, order_id)
    logger.info("Order %s edited: %d line(s), total %s", order.id, len(order.items), order.total_price)
    await publish_change(FEED_TABLE, "UPDATE", order_row(order))
    return order


async def delete_order(db: AsyncSession, order_id: str) -> None:
    """
    Hard delete of an order and its line items. Live orders still own their
    table, so only completed or cancelled orders can be deleted.
    """
    order = await get_order(db, order_id)
    if not order.is_terminal:
        raise BusinessRuleViolation(
            f"Order {order.id[:8]} is still {order.status}. Complete or cancel it before deleting."
        )
    row = order_row(order)
    await db.delete(order)
    await commit_or_fail(db, f"deleting order {order_id[:8]}")

    logger.info("Order %s deleted", order_id)
    await publish_change(FEED_TABLE, "DELETE", row)
