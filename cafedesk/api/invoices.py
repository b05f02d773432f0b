"""
Cafe Desk - Invoices API (lookup, reprint, PDF download)
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import ALL_STAFF, require_roles
from cafedesk.core.errors import NotFound
from cafedesk.db import order_ops, table_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.exports.invoice_pdf import render_invoice_pdf
from cafedesk.schemas.order import InvoiceOut

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceOut])
async def list_invoices(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await order_ops.list_invoices(db, limit=limit)


@router.get("/by-order/{order_id}", response_model=InvoiceOut)
async def invoice_for_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    invoice = await order_ops.find_invoice(db, order_id)
    if invoice is None:
        raise NotFound(f"Order {order_id} has not been billed yet.")
    return invoice


@router.get("/{invoice_number}", response_model=InvoiceOut)
async def get_invoice(
    invoice_number: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    return await order_ops.get_invoice(db, invoice_number)


@router.get("/{invoice_number}/pdf")
async def download_invoice_pdf(
    invoice_number: str,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*ALL_STAFF)),
):
    invoice = await order_ops.get_invoice(db, invoice_number)
    cafe = await table_ops.get_cafe_settings(db)
    pdf = render_invoice_pdf(invoice, cafe_name=cafe.cafe_name)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice.invoice_number}.pdf"'},
    )
