"""
Sales analytics: window boundaries, aggregation, prep time filter, dashboard.
"""
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from cafedesk.db import order_ops, report_ops
from cafedesk.db.report_ops import _months_back, aggregate, average_prep_minutes, window_start
from cafedesk.models import MenuItem, Order, OrderItem
from cafedesk.schemas.order import CartLineIn
from cafedesk.schemas.report import ReportWindow

NOW = datetime(2026, 3, 15, 5, 0, tzinfo=timezone.utc)  # 10:30 in Kolkata
LATTE = MenuItem(name="Latte", price=Decimal("100"), category="Hot Coffee")
BROWNIE = MenuItem(name="Brownie", price=Decimal("75"), category="Bakery")


def make_order(total, status="completed", mode="cash", minutes=10, lines=(), created=NOW):
    order = Order(
        id=str(uuid.uuid4()),
        table_number=1,
        status=status,
        total_price=Decimal(total),
        is_paid=status == "completed",
        payment_mode=mode,
        order_source="staff",
        created_at=created,
        updated_at=created + timedelta(minutes=minutes),
    )
    order.items = [
        OrderItem(item_name=item.name, quantity=qty, price_at_order=item.price, menu_item=item)
        for item, qty in lines
    ]
    return order


def test_window_starts_at_local_midnight():
    assert window_start(ReportWindow.TODAY, NOW) == datetime(2026, 3, 14, 18, 30, tzinfo=timezone.utc)
    assert window_start(ReportWindow.WEEK, NOW) == datetime(2026, 3, 7, 18, 30, tzinfo=timezone.utc)
    assert window_start(ReportWindow.MONTH, NOW) == datetime(2026, 2, 14, 18, 30, tzinfo=timezone.utc)
    assert window_start(ReportWindow.SIX_MONTHS, NOW) == datetime(2025, 9, 14, 18, 30, tzinfo=timezone.utc)
    assert window_start(ReportWindow.YEAR, NOW) == datetime(2025, 3, 14, 18, 30, tzinfo=timezone.utc)


def test_months_back_clamps_to_short_month():
    assert _months_back(date(2026, 3, 31), 1) == date(2026, 2, 28)
    assert _months_back(date(2024, 3, 31), 1) == date(2024, 2, 29)
    assert _months_back(date(2026, 1, 10), 1) == date(2025, 12, 10)


def test_prep_time_ignores_implausible_samples():
    orders = [
        make_order(100, minutes=12),
        make_order(100, minutes=18),
        make_order(100, minutes=180),  # left open over lunch
        make_order(100, minutes=0),
    ]
    assert average_prep_minutes(orders) == 15.0
    assert average_prep_minutes([make_order(100, minutes=500)]) is None


def test_aggregate_counts_completed_revenue_only():
    orders = [
        make_order("525", mode="upi", lines=[(LATTE, 3), (BROWNIE, 3)]),
        make_order("200", mode="pending", lines=[(LATTE, 2)]),
        make_order("75", status="cancelled", lines=[(BROWNIE, 1)]),
        make_order("100", status="preparing", lines=[(LATTE, 1)]),
    ]
    report = aggregate(orders, ReportWindow.TODAY, window_start(ReportWindow.TODAY, NOW))

    assert report.total_revenue == Decimal("725.00")
    assert report.total_orders == 2
    assert report.average_order_value == Decimal("362.50")
    assert report.cancelled_orders == 1
    assert report.revenue_lost == Decimal("75.00")
    assert report.tax_subtotal == Decimal("690.48")
    assert report.cgst == report.sgst == Decimal("17.26")

    payments = {row.name: row.value for row in report.payment_breakdown}
    assert payments == {"UPI": 1, "CASH": 1}

    assert [(row.name, row.value) for row in report.top_items] == [("Latte", 5), ("Brownie", 3)]
    assert report.best_selling_item == "Latte"
    categories = {row.name: row.value for row in report.category_revenue}
    assert categories == {"Hot Coffee": Decimal("500.00"), "Bakery": Decimal("225.00")}
    assert [row.name for row in report.daily_trend] == ["2026-03-15"]


def test_aggregate_of_nothing():
    report = aggregate([], ReportWindow.WEEK, window_start(ReportWindow.WEEK, NOW))
    assert report.total_revenue == Decimal("0")
    assert report.average_order_value == Decimal("0")
    assert report.best_selling_item is None
    assert report.average_prep_minutes is None


def test_items_without_menu_row_are_uncategorized():
    order = make_order("60")
    order.items = [OrderItem(item_name="Old Item", quantity=1, price_at_order=Decimal("60"))]
    report = aggregate([order], ReportWindow.TODAY, NOW)
    assert [row.name for row in report.category_revenue] == ["Uncategorized"]


async def test_sales_report_and_dashboard_from_store(db, menu):
    cart = await order_ops.build_cart(db, [CartLineIn(menu_item_id=menu["D"].id, quantity=1)])
    billed = (await order_ops.place_order(db, 1, cart)).order
    await order_ops.complete_and_bill(db, billed.id, "card")
    cart = await order_ops.build_cart(db, [CartLineIn(menu_item_id=menu["A"].id, quantity=2)])
    await order_ops.place_order(db, 2, cart)

    report, orders = await report_ops.sales_report(db, ReportWindow.TODAY)
    assert len(orders) == 2
    assert report.total_revenue == Decimal("525.00")
    assert report.top_items[0].name == "Family Platter"
    assert report.category_revenue[0].name == "Meals"

    stats = await report_ops.dashboard_stats(db)
    assert stats.today_revenue == Decimal("525.00")
    assert stats.live_orders == 1
    assert stats.total_orders == 2
    assert stats.completed_orders == 1
    assert sum(row.value for row in stats.hourly_revenue) == Decimal("725.00")
    assert len(stats.recent_orders) == 2
