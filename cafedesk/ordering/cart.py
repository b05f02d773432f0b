"""
Cafe Desk - Cart aggregator

A Cart belongs to one ordering session (one request, one table tablet, one
admin order dialog). Nothing here is module-level state.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from cafedesk.core.billing import money


@dataclass
class CartLine:
    menu_item_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return money(self.unit_price * self.quantity)


class Cart:
    """Selected menu items keyed by menu item id; repeated adds merge."""

    def __init__(self, lines: Iterable[CartLine] = ()):
        self._lines: dict[str, CartLine] = {}
        for line in lines:
            self.add(line.menu_item_id, line.name, line.unit_price, line.quantity)

    def add(self, menu_item_id: str, name: str, unit_price, quantity: int = 1) -> CartLine:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        line = self._lines.get(menu_item_id)
        if line is None:
            line = CartLine(menu_item_id=menu_item_id, name=name, unit_price=money(unit_price), quantity=0)
            self._lines[menu_item_id] = line
        line.quantity += quantity
        return line

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def total(self) -> Decimal:
        return money(sum((line.line_total for line in self._lines.values()), Decimal("0")))

    def __len__(self) -> int:
        return len(self._lines)

    def __repr__(self) -> str:
        return f"<Cart lines={len(self._lines)} total={self.total}>"
