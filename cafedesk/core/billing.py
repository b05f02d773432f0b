"""
Cafe Desk - Invoice arithmetic

Menu prices already include GST, so the taxable subtotal is back-computed
from the order total and the GST is split evenly between CGST and SGST.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from cafedesk.core.config import get_settings

settings = get_settings()

PAISE = Decimal("0.01")
RUPEE = Decimal("1")
INVOICE_NUMBER_DIGITS = 8


def money(value) -> Decimal:
    """Coerce floats, ints and strings into a 2-place Decimal."""
    return Decimal(str(value)).quantize(PAISE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    cgst: Decimal
    sgst: Decimal
    rounding: Decimal
    total: Decimal

    @property
    def unrounded(self) -> Decimal:
        return self.subtotal + self.cgst + self.sgst


def split_gst(gst_inclusive_amount) -> tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, cgst, sgst) for a GST-inclusive amount."""
    gross = Decimal(str(gst_inclusive_amount))
    subtotal = (gross / (1 + settings.GST_RATE)).quantize(PAISE, rounding=ROUND_HALF_UP)
    half_rate = settings.GST_RATE / 2
    cgst = (subtotal * half_rate).quantize(PAISE, rounding=ROUND_HALF_UP)
    return subtotal, cgst, cgst


def compute_invoice_totals(gst_inclusive_total) -> InvoiceTotals:
    """
    subtotal = total / 1.05
    cgst = sgst = subtotal * 0.025
    total = round(subtotal + cgst + sgst) to the whole rupee
    rounding = total - (subtotal + cgst + sgst)
    """
    subtotal, cgst, sgst = split_gst(gst_inclusive_total)
    unrounded = subtotal + cgst + sgst
    total = unrounded.quantize(RUPEE, rounding=ROUND_HALF_UP)
    return InvoiceTotals(
        subtotal=subtotal,
        cgst=cgst,
        sgst=sgst,
        rounding=(total - unrounded).quantize(PAISE),
        total=total.quantize(PAISE),
    )


def invoice_number_for(order_id: str, digits: int = INVOICE_NUMBER_DIGITS) -> str:
    """INV- plus the leading hex digits of the order id."""
    return f"INV-{order_id.replace('-', '')[:digits].upper()}"
