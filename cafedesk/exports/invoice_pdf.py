"""
Cafe Desk - Printable invoice (PDF via reportlab)
"""
import io
from datetime import timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from cafedesk.core.config import get_settings
from cafedesk.models.invoice import Invoice

settings = get_settings()

LEFT = 40
RIGHT = 555
LINE_HEIGHT = 14
BOTTOM_MARGIN = 90

# Helvetica has no rupee glyph.
CURRENCY = "Rs."


def _amount(value) -> str:
    return f"{CURRENCY} {Decimal(str(value)):,.2f}"


def _generated_at(invoice: Invoice) -> str:
    if invoice.generated_at is None:
        return ""
    stamp = invoice.generated_at
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.astimezone(ZoneInfo(settings.CAFE_TIMEZONE)).strftime("%d %b %Y, %I:%M %p")


def _letterhead(c: canvas.Canvas, width: float, height: float, cafe_name: str) -> float:
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(width / 2, height - 50, cafe_name.upper())
    c.setFont("Helvetica-Oblique", 9)
    c.drawCentredString(width / 2, height - 64, settings.CAFE_TAGLINE)
    c.setFont("Helvetica", 9)
    c.drawCentredString(width / 2, height - 78, settings.CAFE_ADDRESS)
    c.drawCentredString(width / 2, height - 90, f"Contact: {settings.CAFE_PHONE}")
    c.drawCentredString(
        width / 2, height - 102, f"GSTIN: {settings.CAFE_GSTIN}    FSSAI: {settings.CAFE_FSSAI}"
    )
    c.setLineWidth(0.5)
    c.line(LEFT, height - 112, RIGHT, height - 112)
    return height - 130


def _item_header(c: canvas.Canvas, y: float) -> float:
    c.setFont("Helvetica-Bold", 10)
    c.drawString(LEFT, y, "Item")
    c.drawRightString(360, y, "Qty")
    c.drawRightString(450, y, "Rate")
    c.drawRightString(RIGHT, y, "Amount")
    y -= 6
    c.line(LEFT, y, RIGHT, y)
    return y - LINE_HEIGHT


def render_invoice_pdf(invoice: Invoice, cafe_name: str | None = None) -> bytes:
    """Render one invoice to PDF bytes."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"Invoice {invoice.invoice_number}")
    width, height = A4

    y = _letterhead(c, width, height, cafe_name or settings.CAFE_NAME)

    c.setFont("Helvetica-Bold", 11)
    c.drawString(LEFT, y, f"INVOICE: {invoice.invoice_number}")
    c.drawRightString(RIGHT, y, f"TABLE: {invoice.table_number}")
    y -= LINE_HEIGHT
    c.setFont("Helvetica", 10)
    c.drawString(LEFT, y, f"Date: {_generated_at(invoice)}")
    c.drawRightString(RIGHT, y, f"Payment: {invoice.payment_mode.upper()}")
    y -= LINE_HEIGHT
    c.drawString(LEFT, y, f"Order type: {invoice.order_type}")
    c.drawRightString(RIGHT, y, f"Cashier: {invoice.cashier_name}")
    y -= LINE_HEIGHT * 2

    y = _item_header(c, y)
    c.setFont("Helvetica", 10)
    for line in invoice.items or []:
        c.drawString(LEFT, y, str(line.get("name", ""))[:45])
        c.drawRightString(360, y, str(line.get("quantity", "")))
        c.drawRightString(450, y, _amount(line.get("price", 0)))
        c.drawRightString(RIGHT, y, _amount(line.get("total", 0)))
        y -= LINE_HEIGHT
        if y < BOTTOM_MARGIN:
            c.showPage()
            y = _item_header(c, height - 60)
            c.setFont("Helvetica", 10)

    y -= 4
    c.line(LEFT, y, RIGHT, y)
    y -= LINE_HEIGHT + 2

    half_rate = settings.GST_RATE * 50
    totals = [
        ("Subtotal", invoice.subtotal),
        (f"CGST ({half_rate.normalize()}%)", invoice.cgst),
        (f"SGST ({half_rate.normalize()}%)", invoice.sgst),
        ("Round off", invoice.rounding),
    ]
    c.setFont("Helvetica", 10)
    for label, value in totals:
        c.drawRightString(450, y, label)
        c.drawRightString(RIGHT, y, _amount(value))
        y -= LINE_HEIGHT

    c.setFont("Helvetica-Bold", 13)
    y -= 4
    c.drawRightString(450, y, "TOTAL")
    c.drawRightString(RIGHT, y, _amount(invoice.total))
    y -= LINE_HEIGHT + 4
    c.setFont("Helvetica-Bold", 10)
    c.drawRightString(RIGHT, y, f"{invoice.payment_status.upper()} via {invoice.payment_mode.upper()}")

    c.setFont("Helvetica-Oblique", 9)
    c.drawCentredString(width / 2, 50, f"Thank you for visiting {cafe_name or settings.CAFE_NAME}!")

    c.showPage()
    c.save()
    return buffer.getvalue()
