"""
Cafe Desk - Cafe settings (single row, id = 1)
"""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cafedesk.db.database import Base
from cafedesk.models.order import now_utc

SETTINGS_ROW_ID = 1


class CafeSettings(Base):
    __tablename__ = "cafe_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False, default=SETTINGS_ROW_ID)
    cafe_name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_tables: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
