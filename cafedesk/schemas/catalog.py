"""
Cafe Desk - Menu, gallery and cafe settings schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from cafedesk.schemas.order import Money


# ─── Menu ─────────────────────────────────────────────────────────────────────

class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str | None = None
    category: str = Field("Hot Coffee", min_length=1, max_length=100)
    image_url: str | None = Field(None, max_length=512)
    is_available: bool = True
    is_vegetarian: bool = False
    is_spicy: bool = False
    is_bestseller: bool = False


class MenuItemUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: str | None = None
    category: str | None = Field(None, min_length=1, max_length=100)
    image_url: str | None = Field(None, max_length=512)
    is_available: bool | None = None
    is_vegetarian: bool | None = None
    is_spicy: bool | None = None
    is_bestseller: bool | None = None


class MenuItemOut(BaseModel):
    id: str
    name: str
    description: str | None
    price: Money
    category: str
    image_url: str | None
    is_available: bool
    is_vegetarian: bool
    is_spicy: bool
    is_bestseller: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


# ─── Gallery ──────────────────────────────────────────────────────────────────

class GalleryCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GalleryCategoryOut(BaseModel):
    id: str
    name: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class GalleryImageCreate(BaseModel):
    image_url: str = Field(..., min_length=1, max_length=512)
    alt_text: str | None = Field(None, max_length=255)
    category_id: str | None = None


class GalleryImageOut(BaseModel):
    id: str
    image_url: str
    alt_text: str
    category_id: str | None
    category_name: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


# ─── Settings ─────────────────────────────────────────────────────────────────

class CafeSettingsOut(BaseModel):
    cafe_name: str
    total_tables: int
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class CafeSettingsUpdate(BaseModel):
    cafe_name: str | None = Field(None, min_length=1, max_length=255)
    total_tables: int | None = None
