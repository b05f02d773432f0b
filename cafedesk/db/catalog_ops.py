"""
Cafe Desk - Menu and gallery administration

[CONFIG DATA] Menu price edits never reach existing order lines; those keep
their price_at_order.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.core.errors import BusinessRuleViolation, NotFound, ValidationFailed
from cafedesk.db.database import commit_or_fail
from cafedesk.models.gallery import GalleryCategory, GalleryImage
from cafedesk.models.menu import MenuItem

logger = logging.getLogger(__name__)


# ─── Menu ─────────────────────────────────────────────────────────────────────

async def list_menu(
    db: AsyncSession,
    available_only: bool = False,
    category: str | None = None,
) -> list[MenuItem]:
    query = select(MenuItem).order_by(MenuItem.name).execution_options(populate_existing=True)
    if available_only:
        query = query.where(MenuItem.is_available.is_(True))
    if category:
        query = query.where(MenuItem.category == category)
    result = await db.execute(query)
    return list(result.scalars().all())


async def menu_categories(db: AsyncSession, available_only: bool = False) -> list[str]:
    query = select(MenuItem.category).distinct().order_by(MenuItem.category)
    if available_only:
        query = query.where(MenuItem.is_available.is_(True))
    result = await db.execute(query)
    return [c for c in result.scalars().all() if c]


async def get_menu_item(db: AsyncSession, item_id: str) -> MenuItem:
    item = await db.get(MenuItem, item_id, populate_existing=True)
    if item is None:
        raise NotFound("Menu item not found.")
    return item


async def create_menu_item(db: AsyncSession, **fields) -> MenuItem:
    name = (fields.get("name") or "").strip()
    if not name:
        raise ValidationFailed("Item name is required.")
    if fields.get("price") is None or fields["price"] <= 0:
        raise ValidationFailed("Price must be greater than zero.")
    fields["name"] = name
    item = MenuItem(**fields)
    db.add(item)
    await commit_or_fail(db, f"adding menu item '{name}'")
    logger.info("Menu item '%s' added at %s", item.name, item.price)
    return item


async def update_menu_item(db: AsyncSession, item_id: str, **changes) -> MenuItem:
    item = await get_menu_item(db, item_id)
    for field, value in changes.items():
        if value is None:
            continue
        if field == "name" and not str(value).strip():
            raise ValidationFailed("Item name is required.")
        setattr(item, field, value.strip() if isinstance(value, str) else value)
    await commit_or_fail(db, f"updating menu item '{item.name}'")
    return item


async def toggle_availability(db: AsyncSession, item_id: str) -> MenuItem:
    item = await get_menu_item(db, item_id)
    item.is_available = not item.is_available
    await commit_or_fail(db, f"toggling '{item.name}'")
    logger.info("Menu item '%s' is now %s", item.name, "available" if item.is_available else "unavailable")
    return item


async def delete_menu_item(db: AsyncSession, item_id: str) -> None:
    item = await get_menu_item(db, item_id)
    name = item.name
    await db.delete(item)
    await commit_or_fail(db, f"deleting menu item '{name}'")
    logger.info("Menu item '%s' deleted", name)


# ─── Gallery ──────────────────────────────────────────────────────────────────

async def list_gallery_categories(db: AsyncSession) -> list[GalleryCategory]:
    result = await db.execute(select(GalleryCategory).order_by(GalleryCategory.name))
    return list(result.scalars().all())


async def create_gallery_category(db: AsyncSession, name: str) -> GalleryCategory:
    name = name.strip()
    if not name:
        raise ValidationFailed("Category name is required.")
    taken = await db.scalar(select(GalleryCategory.id).where(func.lower(GalleryCategory.name) == name.lower()))
    if taken is not None:
        raise BusinessRuleViolation(f"Category '{name}' already exists.")
    category = GalleryCategory(name=name)
    db.add(category)
    await commit_or_fail(db, f"creating gallery category '{name}'")
    return category


async def delete_gallery_category(db: AsyncSession, category_id: str) -> None:
    category = await db.get(GalleryCategory, category_id)
    if category is None:
        raise NotFound("Gallery category not found.")
    in_use = await db.scalar(
        select(func.count()).select_from(GalleryImage).where(GalleryImage.category_id == category_id)
    )
    if in_use:
        raise BusinessRuleViolation(
            f"Category '{category.name}' is used by {in_use} image(s). Move or delete them first."
        )
    await db.delete(category)
    await commit_or_fail(db, f"deleting gallery category '{category.name}'")


async def list_gallery_images(db: AsyncSession) -> list[tuple[GalleryImage, str | None]]:
    result = await db.execute(
        select(GalleryImage, GalleryCategory.name)
        .outerjoin(GalleryCategory, GalleryImage.category_id == GalleryCategory.id)
        .order_by(GalleryImage.created_at.desc())
    )
    return [(image, category_name) for image, category_name in result.all()]


async def add_gallery_image(
    db: AsyncSession,
    image_url: str,
    alt_text: str | None = None,
    category_id: str | None = None,
) -> GalleryImage:
    image_url = image_url.strip()
    if not image_url:
        raise ValidationFailed("Image URL is required.")
    if category_id and await db.get(GalleryCategory, category_id) is None:
        raise ValidationFailed("Gallery category does not exist.")
    image = GalleryImage(
        image_url=image_url,
        alt_text=(alt_text or "").strip() or "Gallery image",
        category_id=category_id or None,
    )
    db.add(image)
    await commit_or_fail(db, "adding a gallery image")
    return image


async def delete_gallery_image(db: AsyncSession, image_id: str) -> None:
    image = await db.get(GalleryImage, image_id)
    if image is None:
        raise NotFound("Gallery image not found.")
    await db.delete(image)
    await commit_or_fail(db, "deleting a gallery image")
