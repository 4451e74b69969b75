"""Shopping cart state"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from vision_pos.pos.catalog import DisplayNames, Product
from vision_pos.utils.helpers import amount_to_json
from vision_pos.utils.logger import logger


@dataclass(frozen=True)
class CartItem:
    """Single line in the cart"""
    id: int
    product_id: int
    display_names: DisplayNames
    price: Decimal
    confidence: Optional[float]
    added_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "namePrimary": self.display_names.primary,
            "nameSecondary": self.display_names.secondary,
            "price": amount_to_json(self.price),
            "confidence": self.confidence,
            "addedAt": self.added_at
        }


@dataclass(frozen=True)
class OrderSnapshot:
    """Immutable copy of the cart taken at checkout"""
    items: List[CartItem] = field(default_factory=list)
    total: Decimal = Decimal(0)
    items_count: int = 0


class Cart:
    """Ordered list of cart items with running total"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._items: List[CartItem] = []
        self._next_id = 0
        self._clock = clock or datetime.now

    def add_item(self, product: Product, confidence: Optional[float] = None) -> CartItem:
        """Append a product and return the new cart item"""
        self._next_id += 1
        item = CartItem(
            id=self._next_id,
            product_id=product.id,
            display_names=product.display_names,
            price=product.price,
            confidence=confidence,
            added_at=self._clock().isoformat()
        )
        self._items.append(item)

        logger.debug(f"Added item: {product.display_names.secondary}")
        return item

    def remove_item(self, item_id: int) -> Optional[CartItem]:
        """Remove the item with this id, no-op if absent"""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                removed = self._items.pop(index)
                logger.debug(f"Removed item: {removed.display_names.secondary}")
                return removed
        return None

    def clear(self):
        self._items = []
        logger.debug("Cart cleared")

    def total(self) -> Decimal:
        return sum((item.price for item in self._items), Decimal(0))

    def item_count(self) -> int:
        return len(self._items)

    def items(self) -> List[CartItem]:
        return list(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def order_snapshot(self) -> OrderSnapshot:
        return OrderSnapshot(
            items=self.items(),
            total=self.total(),
            items_count=self.item_count()
        )
