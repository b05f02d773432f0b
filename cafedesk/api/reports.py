"""
Cafe Desk - Reports API: sales analytics, CSV export, live dashboard
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import ALL_STAFF, BACK_OFFICE, require_roles
from cafedesk.db import report_ops, table_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.exports.csv_export import sales_report_csv
from cafedesk.schemas.report import DashboardStats, ReportWindow, SalesReport

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/sales", response_model=SalesReport)
async def sales_report(
    window: ReportWindow = Query(ReportWindow.TODAY),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    report, _orders = await report_ops.sales_report(db, window)
    return report


@router.get("/sales.csv")
async def sales_report_export(
    window: ReportWindow = Query(ReportWindow.TODAY),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*BACK_OFFICE)),
):
    report, orders = await report_ops.sales_report(db, window)
    cafe = await table_ops.get_cafe_settings(db)
    body = sales_report_csv(report, orders, cafe_name=cafe.cafe_name)
    stamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d")
    return Response(
        content=body.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="sales_report_{window.value}_{stamp}.csv"'},
    )


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await report_ops.dashboard_stats(db)
