"""
Cafe Desk - Reporting schemas (derived, never persisted)
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from cafedesk.schemas.order import Money, OrderOut


class ReportWindow(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    SIX_MONTHS = "6months"
    YEAR = "year"


WINDOW_LABELS = {
    ReportWindow.TODAY: "Today",
    ReportWindow.WEEK: "Last 7 Days",
    ReportWindow.MONTH: "Last Month",
    ReportWindow.SIX_MONTHS: "Last 6 Months",
    ReportWindow.YEAR: "Last Year",
}


class NamedValue(BaseModel):
    name: str
    value: Money


class NamedCount(BaseModel):
    name: str
    value: int


class SalesReport(BaseModel):
    window: ReportWindow
    window_start: datetime
    total_revenue: Money
    total_orders: int
    average_order_value: Money
    cancelled_orders: int
    revenue_lost: Money
    average_prep_minutes: float | None
    tax_subtotal: Money
    cgst: Money
    sgst: Money
    daily_trend: list[NamedValue]
    payment_breakdown: list[NamedCount]
    top_items: list[NamedCount]
    category_revenue: list[NamedValue]
    best_selling_item: str | None


class DashboardStats(BaseModel):
    today_revenue: Money
    live_orders: int
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    average_prep_minutes: float | None
    hourly_revenue: list[NamedValue]
    recent_orders: list[OrderOut]
