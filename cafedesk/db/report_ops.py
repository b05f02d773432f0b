"""
Cafe Desk - Reporting aggregator

Read-only. Loads the orders created inside a window and derives revenue,
tax, prep time and product mix from them. ``aggregate`` is a pure function
so it can be exercised without a database.
"""
import logging
from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cafedesk.core.billing import money, split_gst
from cafedesk.core.config import get_settings
from cafedesk.models.order import Order, OrderItem, OrderStatus, PaymentMode
from cafedesk.schemas.order import OrderOut
from cafedesk.schemas.report import (
    DashboardStats,
    NamedCount,
    NamedValue,
    ReportWindow,
    SalesReport,
)

settings = get_settings()
logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TOP_ITEMS_LIMIT = 5
RECENT_ORDERS_LIMIT = 10
UNCATEGORIZED = "Uncategorized"


def _local_tz() -> ZoneInfo:
    return ZoneInfo(settings.CAFE_TIMEZONE)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _months_back(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp the day for short months (31 March minus one month -> 28/29 Feb).
    for candidate in (day.day, 30, 29, 28):
        try:
            return date(year, month, candidate)
        except ValueError:
            continue
    raise ValueError(f"cannot step back {months} months from {day}")


def window_start(window: ReportWindow, now: datetime | None = None) -> datetime:
    """Local midnight of the first day in the window, returned in UTC."""
    tz = _local_tz()
    local_now = (now or datetime.now(tz=timezone.utc)).astimezone(tz)
    day = local_now.date()
    if window == ReportWindow.WEEK:
        day = day - timedelta(days=7)
    elif window == ReportWindow.MONTH:
        day = _months_back(day, 1)
    elif window == ReportWindow.SIX_MONTHS:
        day = _months_back(day, 6)
    elif window == ReportWindow.YEAR:
        day = _months_back(day, 12)
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def prep_minutes(order: Order) -> float | None:
    """Minutes from placement to the last status change, if plausible."""
    if order.created_at is None or order.updated_at is None:
        return None
    delta = (as_utc(order.updated_at) - as_utc(order.created_at)).total_seconds() / 60
    if 0 < delta <= settings.PREP_TIME_MAX_MINUTES:
        return delta
    return None


def average_prep_minutes(orders: Iterable[Order]) -> float | None:
    samples = [m for m in (prep_minutes(o) for o in orders) if m is not None]
    if not samples:
        return None
    return round(sum(samples) / len(samples), 1)


def _item_category(item: OrderItem) -> str:
    if item.menu_item is not None and item.menu_item.category:
        return item.menu_item.category
    return UNCATEGORIZED


def aggregate(orders: list[Order], window: ReportWindow, start: datetime) -> SalesReport:
    completed = [o for o in orders if o.status == OrderStatus.COMPLETED]
    cancelled = [o for o in orders if o.status == OrderStatus.CANCELLED]

    revenue = money(sum((Decimal(o.total_price) for o in completed), ZERO))
    order_count = len(completed)
    aov = money(revenue / order_count) if order_count else money(0)
    tax_subtotal, cgst, sgst = split_gst(revenue)

    tz = _local_tz()
    daily: dict[str, Decimal] = defaultdict(lambda: ZERO)
    payments: Counter = Counter()
    units: Counter = Counter()
    categories: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for order in completed:
        day = as_utc(order.created_at).astimezone(tz).date().isoformat()
        daily[day] += Decimal(order.total_price)
        mode = order.payment_mode
        if not mode or mode == PaymentMode.PENDING:
            mode = PaymentMode.CASH.value
        payments[mode.upper()] += 1
        for item in order.items:
            units[item.item_name] += item.quantity
            categories[_item_category(item)] += item.line_total

    top_items = sorted(units.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_ITEMS_LIMIT]
    category_revenue = sorted(categories.items(), key=lambda kv: (-kv[1], kv[0]))

    return SalesReport(
        window=window,
        window_start=start,
        total_revenue=revenue,
        total_orders=order_count,
        average_order_value=aov,
        cancelled_orders=len(cancelled),
        revenue_lost=money(sum((Decimal(o.total_price) for o in cancelled), ZERO)),
        average_prep_minutes=average_prep_minutes(completed),
        tax_subtotal=tax_subtotal,
        cgst=cgst,
        sgst=sgst,
        daily_trend=[NamedValue(name=k, value=money(v)) for k, v in sorted(daily.items())],
        payment_breakdown=[NamedCount(name=k, value=v) for k, v in payments.most_common()],
        top_items=[NamedCount(name=k, value=v) for k, v in top_items],
        category_revenue=[NamedValue(name=k, value=money(v)) for k, v in category_revenue],
        best_selling_item=top_items[0][0] if top_items else None,
    )


async def orders_since(db: AsyncSession, start: datetime) -> list[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.created_at >= start)
        .options(selectinload(Order.items).joinedload(OrderItem.menu_item))
        .order_by(Order.created_at.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def sales_report(
    db: AsyncSession,
    window: ReportWindow,
    now: datetime | None = None,
) -> tuple[SalesReport, list[Order]]:
    start = window_start(window, now)
    orders = await orders_since(db, start)
    logger.debug("Sales report %s: %d orders since %s", window.value, len(orders), start.isoformat())
    return aggregate(orders, window, start), orders


async def dashboard_stats(db: AsyncSession, now: datetime | None = None) -> DashboardStats:
    start = window_start(ReportWindow.TODAY, now)
    orders = await orders_since(db, start)
    completed = [o for o in orders if o.status == OrderStatus.COMPLETED]

    tz = _local_tz()
    hourly: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for order in orders:
        label = f"{as_utc(order.created_at).astimezone(tz).hour:02d}:00"
        hourly[label] += Decimal(order.total_price)

    recent = sorted(orders, key=lambda o: as_utc(o.created_at), reverse=True)[:RECENT_ORDERS_LIMIT]
    return DashboardStats(
        today_revenue=money(sum((Decimal(o.total_price) for o in completed), ZERO)),
        live_orders=sum(1 for o in orders if not o.is_terminal),
        total_orders=len(orders),
        completed_orders=len(completed),
        cancelled_orders=sum(1 for o in orders if o.status == OrderStatus.CANCELLED),
        average_prep_minutes=average_prep_minutes(completed),
        hourly_revenue=[NamedValue(name=k, value=money(v)) for k, v in sorted(hourly.items())],
        recent_orders=[OrderOut.model_validate(o) for o in recent],
    )
