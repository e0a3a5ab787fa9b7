"""
core/catalog.py – Static canteen menu.
Read-only: the kiosk never mutates the catalog.
"""
from typing import Optional

from ..models import MenuItem

MENU: list[MenuItem] = [
    MenuItem(id="1", name="Cream bun", price=80.0,
             description="A soft bun filled with delicious cream.",
             image_url="/cream-bun.jpg", image_hint="cream bun"),
    MenuItem(id="2", name="Fish bun", price=100.0,
             description="A savory bun with a fish filling.",
             image_url="/fish-bun.jpg", image_hint="fish bun"),
    MenuItem(id="3", name="Viana bun", price=120.0,
             description="A delicious and popular Viana sausage bun.",
             image_url="/viana-bun.jpg", image_hint="sausage bun"),
    MenuItem(id="4", name="Tea bun", price=60.0,
             description="A slightly sweet bun, perfect with tea.",
             image_url="/tea-bun.jpeg", image_hint="tea bun"),
    MenuItem(id="5", name="Elawalu rotti", price=90.0,
             description="A vegetable-filled flatbread, a local favorite.",
             image_url="/elawalu-rotti.jpg", image_hint="vegetable rotti"),
    MenuItem(id="6", name="Sausage bun", price=130.0,
             description="A classic sausage bun.",
             image_url="/sausage-bun.png", image_hint="sausage bun"),
    MenuItem(id="7", name="Original Cream Bun", price=100.0,
             description="A soft bun filled with delicious cream.",
             image_url="/cream-bun.jpg", image_hint="cream bun"),
]


class Catalog:
    """Lookup over a fixed list of menu items."""

    def __init__(self, items: Optional[list[MenuItem]] = None) -> None:
        self._items = list(items if items is not None else MENU)
        self._by_id = {i.id: i for i in self._items}

    def all(self) -> list[MenuItem]:
        return list(self._items)

    def get(self, item_id: str) -> MenuItem:
        """Raise KeyError for an unknown id."""
        try:
            return self._by_id[item_id]
        except KeyError:
            raise KeyError(f"Menu item id={item_id} not found") from None
