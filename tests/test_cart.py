from decimal import Decimal

import pytest

from cafedesk.ordering.cart import Cart, CartLine


def test_repeated_adds_merge_into_one_line():
    cart = Cart()
    cart.add("a", "Cappuccino", Decimal("100"), 1)
    cart.add("a", "Cappuccino", Decimal("100"), 2)
    cart.add("b", "Croissant", Decimal("50"))
    assert len(cart) == 2
    assert cart.item_count == 4
    assert cart.total == Decimal("350.00")


def test_seed_lines_merge_too():
    cart = Cart([CartLine("a", "Cappuccino", Decimal("100"), 2), CartLine("a", "Cappuccino", Decimal("100"), 1)])
    assert [(line.menu_item_id, line.quantity) for line in cart.lines] == [("a", 3)]
    assert cart.lines[0].line_total == Decimal("300.00")


def test_add_rejects_non_positive_quantity():
    cart = Cart()
    with pytest.raises(ValueError):
        cart.add("a", "Cappuccino", Decimal("100"), 0)


def test_carts_do_not_share_state():
    first, second = Cart(), Cart()
    first.add("a", "Cappuccino", Decimal("100"))
    assert second.is_empty
    assert second.total == Decimal("0.00")
