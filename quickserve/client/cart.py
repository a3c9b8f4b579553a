"""
Cart Store

Client-side cart: an ordered list of line items merged by menu item id,
written through to storage under the ``cart`` key on every change.
"""

import json
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping, Optional

from quickserve.client.storage import LocalStorage

logger = logging.getLogger(__name__)

CART_KEY = "cart"


@dataclass(frozen=True)
class CartLine:
    """One cart entry: a menu item snapshot plus quantity."""
    id: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None
    special_instructions: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["specialInstructions"] = data.pop("special_instructions")
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartLine":
        return cls(
            id=str(data.get("id") or data["_id"]),
            name=str(data["name"]),
            price=float(data["price"]),
            quantity=int(data["quantity"]),
            image=data.get("image"),
            special_instructions=data.get("specialInstructions"),
        )


class CartStore:
    """
    Cart state with an explicit lifecycle: ``load()`` reads the persisted
    cart, every mutation saves the whole list back.
    """

    def __init__(self, storage: LocalStorage, key: str = CART_KEY):
        self.storage = storage
        self.key = key
        self._lines: list[CartLine] = []

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> "CartStore":
        raw = self.storage.get_item(self.key)
        self._lines = []
        if not raw:
            return self

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list) or not all(isinstance(e, Mapping) for e in entries):
                raise ValueError("expected a list of line objects")
            self._lines = [CartLine.from_dict(entry) for entry in entries]
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Discarding unreadable cart: {e}")
            self._lines = []
        return self

    def _save(self) -> None:
        self.storage.set_item(self.key, json.dumps([line.to_dict() for line in self._lines]))

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def total(self) -> float:
        return sum(line.line_total for line in self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def get(self, item_id: str) -> Optional[CartLine]:
        return next((line for line in self._lines if line.id == item_id), None)

    def is_empty(self) -> bool:
        return not self._lines

    def to_order_items(self) -> list[dict[str, Any]]:
        """Line items in the shape ``POST /api/orders`` expects."""
        return [
            {"name": line.name, "price": line.price, "quantity": line.quantity, "image": line.image}
            for line in self._lines
        ]

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, item: Mapping[str, Any], quantity: int = 1) -> CartLine:
        """
        Add ``quantity`` of a menu item.

        An item already in the cart has its quantity increased; its price
        snapshot is kept.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        item_id = str(item.get("id") or item["_id"])
        existing = self.get(item_id)

        if existing is not None:
            line = replace(existing, quantity=existing.quantity + quantity)
            self._lines = [line if l.id == item_id else l for l in self._lines]
        else:
            line = CartLine(
                id=item_id,
                name=str(item["name"]),
                price=float(item["price"]),
                quantity=quantity,
                image=item.get("image"),
            )
            self._lines.append(line)

        self._save()
        return line

    def remove(self, item_id: str) -> None:
        self._lines = [line for line in self._lines if line.id != item_id]
        self._save()

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove(item_id)
            return
        self._lines = [
            replace(line, quantity=quantity) if line.id == item_id else line
            for line in self._lines
        ]
        self._save()

    def update_special_instructions(self, item_id: str, instructions: str) -> None:
        self._lines = [
            replace(line, special_instructions=instructions) if line.id == item_id else line
            for line in self._lines
        ]
        self._save()

    def clear(self) -> None:
        self._lines = []
        self._save()
