"""
Cafe Desk - Order DB models

[TRANSACTIONAL DATA] orders and their line items.
Status and payment columns hold the lower-case enum values below.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cafedesk.db.database import Base


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


class OrderStatus(str, PyEnum):
    NEW = "new"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# Linear forward progression used by the "next step" action.
NEXT_STATUS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.NEW: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.SERVED,
    OrderStatus.SERVED: OrderStatus.COMPLETED,
}


class PaymentMode(str, PyEnum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    PENDING = "pending"


SETTLEMENT_MODES = frozenset({PaymentMode.CASH, PaymentMode.UPI, PaymentMode.CARD})


class OrderSource(str, PyEnum):
    STAFF = "staff"
    CUSTOMER_ONLINE = "customer_online"


class Order(Base):
    """
    [TRANSACTIONAL DATA]
    version_id is bumped on every write and used for optimistic checks.
    """
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    table_number: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False, default=OrderStatus.NEW.value)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_mode: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentMode.PENDING.value)
    order_source: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderSource.STAFF.value)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.created_at",
    )

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<Order {self.id[:8]} table={self.table_number} status={self.status}>"


class OrderItem(Base):
    """
    [TRANSACTIONAL DATA]
    price_at_order is captured when the line is added; later menu price
    changes never touch it.
    """
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False
    )
    menu_item_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_at_order: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    order: Mapped[Order] = relationship(back_populates="items")
    menu_item: Mapped[Optional["MenuItem"]] = relationship(lazy="joined")  # noqa: F821

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(self.price_at_order)
