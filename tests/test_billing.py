"""
Invoice arithmetic: GST-inclusive totals split into subtotal + CGST + SGST.
"""
from decimal import Decimal

from cafedesk.core.billing import compute_invoice_totals, invoice_number_for, money, split_gst


def test_525_splits_into_500_plus_gst():
    totals = compute_invoice_totals(Decimal("525"))
    assert totals.subtotal == Decimal("500.00")
    assert totals.cgst == Decimal("12.50")
    assert totals.sgst == Decimal("12.50")
    assert totals.total == Decimal("525.00")
    assert totals.rounding == Decimal("0.00")


def test_total_rounds_to_whole_rupee():
    # 250 / 1.05 = 238.095... -> 238.10; 2.5% of that = 5.9525 -> 5.95
    totals = compute_invoice_totals(Decimal("250"))
    assert totals.subtotal == Decimal("238.10")
    assert totals.cgst == totals.sgst == Decimal("5.95")
    assert totals.unrounded == Decimal("250.00")
    assert totals.total == Decimal("250.00")


def test_rounding_absorbs_paise_difference():
    totals = compute_invoice_totals(Decimal("99"))
    assert totals.total == Decimal("99.00")
    assert totals.total - totals.unrounded == totals.rounding
    assert abs(totals.rounding) < Decimal("1")


def test_split_gst_of_zero_is_zero():
    assert split_gst(0) == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))


def test_money_rounds_half_up():
    assert money("2.345") == Decimal("2.35")
    assert money(0.1 + 0.2) == Decimal("0.30")


def test_invoice_number_uses_order_id_prefix():
    assert invoice_number_for("3f0c0c8e-8a55-4d1b-9a44-0d1f3b0c8a10") == "INV-3F0C0C8E"


def test_longer_invoice_number_skips_dashes():
    order_id = "3f0c0c8e-8a55-4d1b-9a44-0d1f3b0c8a10"
    assert invoice_number_for(order_id, 12) == "INV-3F0C0C8E8A55"
    assert invoice_number_for(order_id, 32) == "INV-3F0C0C8E8A554D1B9A440D1F3B0C8A10"
