"""
Cafe Desk - CSV exports (sales report, login history)

Both files start with a UTF-8 byte-order mark so spreadsheet tools pick the
right encoding for the rupee sign and non-ASCII item names.
"""
import csv
import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from cafedesk.core.config import get_settings
from cafedesk.models.order import Order
from cafedesk.models.staff import AdminSession
from cafedesk.schemas.report import WINDOW_LABELS, SalesReport

settings = get_settings()

BOM = "\ufeff"
RUPEE = "₹"


def _local(stamp: datetime | None) -> str:
    if stamp is None:
        return ""
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.astimezone(ZoneInfo(settings.CAFE_TIMEZONE)).strftime("%d/%m/%Y, %I:%M:%S %p")


def _rupees(value) -> str:
    return f"{RUPEE}{float(value):.2f}"


def sales_report_csv(report: SalesReport, orders: list[Order], cafe_name: str | None = None) -> str:
    buffer = io.StringIO()
    buffer.write(BOM)
    writer = csv.writer(buffer, lineterminator="\n")
    name = (cafe_name or settings.CAFE_NAME).upper()

    writer.writerow([f"{name} - SALES REPORT"])
    writer.writerow([f"Report Period: {WINDOW_LABELS[report.window]}"])
    writer.writerow([f"Generated: {_local(datetime.now(tz=timezone.utc))}"])
    writer.writerow([])

    prep = f"{report.average_prep_minutes:.0f} minutes" if report.average_prep_minutes is not None else "N/A"
    writer.writerow(["SUMMARY"])
    writer.writerow(["Metric", "Value"])
    writer.writerow(["Total Revenue", _rupees(report.total_revenue)])
    writer.writerow(["Total Orders", report.total_orders])
    writer.writerow(["Average Order Value", _rupees(report.average_order_value)])
    writer.writerow(["Cancelled Orders", report.cancelled_orders])
    writer.writerow(["Revenue Lost (Cancellations)", _rupees(report.revenue_lost)])
    writer.writerow(["Average Prep Time", prep])
    writer.writerow(["Best Selling Item", report.best_selling_item or "N/A"])
    writer.writerow([])

    writer.writerow(["TAX SUMMARY"])
    writer.writerow(["Tax Type", "Amount"])
    writer.writerow(["Taxable Value", _rupees(report.tax_subtotal)])
    writer.writerow(["CGST (2.5%)", _rupees(report.cgst)])
    writer.writerow(["SGST (2.5%)", _rupees(report.sgst)])
    writer.writerow(["Total GST", _rupees(report.cgst + report.sgst)])
    writer.writerow([])

    writer.writerow(["PAYMENT BREAKDOWN"])
    writer.writerow(["Payment Mode", "Orders"])
    for row in report.payment_breakdown:
        writer.writerow([row.name, row.value])
    writer.writerow([])

    writer.writerow(["TOP SELLING ITEMS"])
    writer.writerow(["Item Name", "Quantity Sold"])
    for row in report.top_items:
        writer.writerow([row.name, row.value])
    writer.writerow([])

    writer.writerow(["CATEGORY PERFORMANCE"])
    writer.writerow(["Category", "Revenue"])
    for row in report.category_revenue:
        writer.writerow([row.name, _rupees(row.value)])
    writer.writerow([])

    writer.writerow(["DAILY REVENUE TREND"])
    writer.writerow(["Date", "Revenue"])
    for row in report.daily_trend:
        writer.writerow([row.name, _rupees(row.value)])
    writer.writerow([])

    writer.writerow(["ORDER DETAILS"])
    writer.writerow(["Order ID", "Table", "Date & Time", "Status", "Payment Mode", "Amount", "Items"])
    for order in orders:
        items = "; ".join(f"{item.item_name} x{item.quantity}" for item in order.items)
        writer.writerow([
            order.id[:8],
            f"Table {order.table_number}",
            _local(order.created_at),
            order.status,
            order.payment_mode or "N/A",
            _rupees(order.total_price),
            items,
        ])
    return buffer.getvalue()


def login_history_csv(sessions: list[AdminSession], durations: list[str]) -> str:
    """Every cell quoted, as the spreadsheet import on the owner's side expects."""
    buffer = io.StringIO()
    buffer.write(BOM)
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["Employee", "Email", "Role", "Login Time", "Logout Time", "Duration", "IP Address", "Status"])
    for session, duration in zip(sessions, durations):
        writer.writerow([
            session.principal_name or "Unknown",
            session.principal_email or "Unknown",
            session.role or "Unknown",
            _local(session.login_at),
            _local(session.logout_at) if session.logout_at else "Active",
            duration,
            session.ip_address or "Unknown",
            session.status,
        ])
    return buffer.getvalue()
