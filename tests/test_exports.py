import csv
import io
import re

from cafedesk.db import order_ops, report_ops, staff_ops
from cafedesk.exports.csv_export import BOM, login_history_csv, sales_report_csv
from cafedesk.exports.invoice_pdf import render_invoice_pdf
from cafedesk.schemas.order import CartLineIn
from cafedesk.schemas.report import ReportWindow
from tests.conftest import STAFF_PASSWORD


async def billed_invoice(db, menu):
    cart = await order_ops.build_cart(
        db,
        [CartLineIn(menu_item_id=menu["D"].id, quantity=1), CartLineIn(menu_item_id=menu["A"].id, quantity=2)],
    )
    order = (await order_ops.place_order(db, 1, cart)).order
    return (await order_ops.complete_and_bill(db, order.id, "upi", cashier_name="Meera")).invoice


async def test_invoice_pdf_renders(db, menu):
    invoice = await billed_invoice(db, menu)
    stored = await order_ops.get_invoice(db, invoice.invoice_number)

    pdf = render_invoice_pdf(stored, cafe_name="Cafe Republic")

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


async def test_invoice_pdf_breaks_long_bills_across_pages(db, menu):
    invoice = await billed_invoice(db, menu)
    stored = await order_ops.get_invoice(db, invoice.invoice_number)
    stored.items = [{"name": f"Item {n}", "quantity": 1, "price": "10.00", "total": "10.00"} for n in range(80)]

    pdf = render_invoice_pdf(stored)

    page_counts = [int(n) for n in re.findall(rb"/Count (\d+)", pdf)]
    assert max(page_counts) >= 2


async def test_sales_csv_sections(db, menu):
    await billed_invoice(db, menu)
    report, orders = await report_ops.sales_report(db, ReportWindow.TODAY)

    body = sales_report_csv(report, orders, cafe_name="Cafe Republic")

    assert body.startswith(BOM)
    rows = list(csv.reader(io.StringIO(body[len(BOM):])))
    assert rows[0] == ["CAFE REPUBLIC - SALES REPORT"]
    assert rows[1] == ["Report Period: Today"]
    flat = [row[0] for row in rows if row]
    for section in (
        "SUMMARY",
        "TAX SUMMARY",
        "PAYMENT BREAKDOWN",
        "TOP SELLING ITEMS",
        "CATEGORY PERFORMANCE",
        "DAILY REVENUE TREND",
        "ORDER DETAILS",
    ):
        assert section in flat
    assert ["Total Revenue", "₹725.00"] in rows
    assert ["UPI", "1"] in rows


async def test_login_history_csv_quotes_every_cell(db, staff):
    await staff_ops.login_employee(db, "EMP2001", STAFF_PASSWORD, device_info="Counter", ip_address="10.0.0.2")
    sessions = await staff_ops.login_history(db)
    durations = [staff_ops.format_duration(s.login_at, s.logout_at) for s in sessions]

    body = login_history_csv(sessions, durations)
    lines = body[len(BOM):].splitlines()

    assert body.startswith(BOM)
    assert lines[0] == '"Employee","Email","Role","Login Time","Logout Time","Duration","IP Address","Status"'
    assert lines[1].startswith('"Meera","Unknown","cashier",')
    assert lines[1].endswith('"Active","Currently Active","10.0.0.2","active"')
