"""Product catalog keyed by classifier label"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from vision_pos.utils.helpers import normalize_label, to_amount


@dataclass(frozen=True)
class DisplayNames:
    primary: str
    secondary: str

    def __str__(self) -> str:
        return f"{self.primary} / {self.secondary}"


@dataclass(frozen=True)
class Product:
    """Sellable product recognized by the classifier"""
    id: int
    display_names: DisplayNames
    price: Decimal
    classifier_label: str

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=int(data["id"]),
            display_names=DisplayNames(
                primary=data.get("name_primary", data.get("name_secondary", "")),
                secondary=data.get("name_secondary", data.get("name_primary", ""))
            ),
            price=to_amount(data["price"]),
            classifier_label=data["classifier_label"]
        )


DEFAULT_PRODUCTS = [
    Product(1, DisplayNames("قهوة", "Coffee"), Decimal(100), "caffee"),
    Product(2, DisplayNames("ماء", "Water"), Decimal(30), "water"),
]


class Catalog:
    """Fixed product table with label lookup"""

    def __init__(self, products: Optional[List[Product]] = None):
        self._products = list(DEFAULT_PRODUCTS if products is None else products)

        ids = [p.id for p in self._products]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate product id in catalog")

        labels = [normalize_label(p.classifier_label) for p in self._products]
        if len(set(labels)) != len(labels):
            raise ValueError("Duplicate classifier label in catalog")

        self._by_label = dict(zip(labels, self._products))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Catalog":
        """Build the catalog from the `catalog` config section"""
        entries = config.get("products")
        if not entries:
            return cls()
        return cls([Product.from_config(entry) for entry in entries])

    def products(self) -> List[Product]:
        return list(self._products)

    def get_by_id(self, product_id: int) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def find_by_label(self, label: str) -> Optional[Product]:
        """Case-insensitive, trimmed exact match on classifier label"""
        return self._by_label.get(normalize_label(label))

    def __len__(self) -> int:
        return len(self._products)
