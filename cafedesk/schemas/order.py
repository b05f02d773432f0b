"""
Cafe Desk - Order, table and invoice schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from cafedesk.models.order import OrderSource, OrderStatus, PaymentMode

# Decimals leave the API as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]


class CartLineIn(BaseModel):
    menu_item_id: str = Field(..., min_length=1, examples=["3f0c0c8e-8a55-4d1b-9a44-0d1f3b0c8a10"])
    quantity: int = Field(..., ge=1, le=50)


class PlaceOrderRequest(BaseModel):
    table_number: int = Field(..., examples=[5])
    items: list[CartLineIn] = Field(default_factory=list, max_length=50)


class EditOrderRequest(BaseModel):
    items: list[CartLineIn] = Field(default_factory=list, max_length=50)


class AdvanceStatusRequest(BaseModel):
    # The status the operator saw when clicking; a mismatch means someone else moved it.
    expected_status: OrderStatus | None = None


class CompleteAndBillRequest(BaseModel):
    payment_mode: PaymentMode


class OrderItemOut(BaseModel):
    id: str
    menu_item_id: str | None
    item_name: str
    quantity: int
    price_at_order: Money
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: str
    table_number: int
    status: OrderStatus
    total_price: Money
    is_paid: bool
    payment_mode: PaymentMode
    order_source: OrderSource
    version_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItemOut] = []

    model_config = {"from_attributes": True}


class PlaceOrderResponse(BaseModel):
    order: OrderOut
    appended: bool
    message: str


class TableOut(BaseModel):
    id: int
    capacity: int
    status: str
    current_order_id: str | None = None
    order: OrderOut | None = None


class InvoiceLine(BaseModel):
    name: str
    quantity: int
    price: Money
    total: Money


class InvoiceOut(BaseModel):
    id: str
    invoice_number: str
    order_id: str
    table_number: int
    order_type: str
    subtotal: Money
    cgst: Money
    sgst: Money
    discount: Money
    service_charge: Money
    rounding: Money
    total: Money
    payment_mode: str
    payment_status: str
    cashier_name: str
    items: list[InvoiceLine]
    generated_at: datetime | None = None

    model_config = {"from_attributes": True}


class BillingResponse(BaseModel):
    order: OrderOut
    invoice: InvoiceOut
    created: bool
