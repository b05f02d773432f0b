"""
Menu, gallery and the staff notification bell.
"""
from decimal import Decimal

import pytest

from cafedesk.core.errors import BusinessRuleViolation, NotFound, ValidationFailed
from cafedesk.db import catalog_ops, notification_ops, order_ops
from cafedesk.models import OrderSource
from cafedesk.schemas.order import CartLineIn


async def test_menu_listing_and_categories(db, menu):
    names = [item.name for item in await catalog_ops.list_menu(db)]
    assert names == sorted(names)
    assert len(names) == 5

    available = await catalog_ops.list_menu(db, available_only=True)
    assert "Seasonal Special" not in [item.name for item in available]

    bakery = await catalog_ops.list_menu(db, category="Bakery")
    assert [item.name for item in bakery] == ["Butter Croissant"]

    assert await catalog_ops.menu_categories(db, available_only=True) == [
        "Bakery", "Cold Coffee", "Hot Coffee", "Meals",
    ]


async def test_menu_item_crud(db):
    item = await catalog_ops.create_menu_item(db, name="  Masala Chai ", price=Decimal("60"), category="Tea")
    assert item.name == "Masala Chai"
    assert item.is_available is True

    item = await catalog_ops.update_menu_item(db, item.id, price=Decimal("65"), description=None)
    assert item.price == Decimal("65")

    item = await catalog_ops.toggle_availability(db, item.id)
    assert item.is_available is False

    await catalog_ops.delete_menu_item(db, item.id)
    with pytest.raises(NotFound):
        await catalog_ops.get_menu_item(db, item.id)


async def test_menu_item_validation(db):
    with pytest.raises(ValidationFailed):
        await catalog_ops.create_menu_item(db, name=" ", price=Decimal("10"))
    with pytest.raises(ValidationFailed):
        await catalog_ops.create_menu_item(db, name="Free Water", price=Decimal("0"))


async def test_price_change_does_not_touch_placed_orders(db, menu):
    cart = await order_ops.build_cart(db, [CartLineIn(menu_item_id=menu["A"].id, quantity=1)])
    order = (await order_ops.place_order(db, 1, cart)).order

    await catalog_ops.update_menu_item(db, menu["A"].id, price=Decimal("120"))

    order = await order_ops.get_order(db, order.id)
    assert order.items[0].price_at_order == Decimal("100")
    assert order.total_price == Decimal("100")


async def test_gallery_categories_and_images(db):
    drinks = await catalog_ops.create_gallery_category(db, "Drinks")
    with pytest.raises(BusinessRuleViolation):
        await catalog_ops.create_gallery_category(db, "drinks")

    image = await catalog_ops.add_gallery_image(db, "https://cdn.example.com/latte.jpg", category_id=drinks.id)
    assert image.alt_text == "Gallery image"
    images = await catalog_ops.list_gallery_images(db)
    assert [(i.id, name) for i, name in images] == [(image.id, "Drinks")]

    with pytest.raises(BusinessRuleViolation):
        await catalog_ops.delete_gallery_category(db, drinks.id)

    await catalog_ops.delete_gallery_image(db, image.id)
    await catalog_ops.delete_gallery_category(db, drinks.id)
    assert await catalog_ops.list_gallery_categories(db) == []


async def test_gallery_image_needs_known_category(db):
    with pytest.raises(ValidationFailed):
        await catalog_ops.add_gallery_image(db, "https://cdn.example.com/x.jpg", category_id="missing")


async def test_notification_bell(db, menu):
    for table in (1, 2, 3):
        cart = await order_ops.build_cart(db, [CartLineIn(menu_item_id=menu["B"].id, quantity=1)])
        await order_ops.place_order(db, table, cart, source=OrderSource.CUSTOMER_ONLINE)

    notes = await notification_ops.recent_notifications(db)
    assert len(notes) == 3
    assert await notification_ops.unread_count(db) == 3

    await notification_ops.mark_read(db, notes[0].id)
    assert await notification_ops.unread_count(db) == 2

    assert await notification_ops.mark_all_read(db) == 2
    assert await notification_ops.unread_count(db) == 0

    with pytest.raises(NotFound):
        await notification_ops.mark_read(db, "missing")
