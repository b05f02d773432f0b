"""
Cafe Desk - Cafe table model

[CONFIG DATA] table numbers 1..N, grown/shrunk by the settings page.
[TRANSACTIONAL DATA] status + current_order_id, written only together with
the order transition that causes them.
"""
from enum import Enum as PyEnum

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cafedesk.db.database import Base


class TableStatus(str, PyEnum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"


class CafeTable(Base):
    __tablename__ = "cafe_tables"

    # The primary key is the table number printed on the table itself.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TableStatus.AVAILABLE.value)
    current_order_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)

    @property
    def is_occupied(self) -> bool:
        return self.status == TableStatus.OCCUPIED

    def __repr__(self) -> str:
        return f"<CafeTable {self.id} {self.status}>"
