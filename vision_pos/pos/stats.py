"""Persisted sales counters"""
import json
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Union

from vision_pos.errors import PersistenceError
from vision_pos.pos.storage import JsonFileStore
from vision_pos.utils.helpers import Amount, amount_to_json, to_amount
from vision_pos.utils.logger import logger


STORAGE_KEY = "pos_stats"

COUNT_FIELDS = ("items_scanned", "orders_completed")
AMOUNT_FIELDS = ("total_revenue",)


@dataclass(frozen=True)
class StatsRecord:
    items_scanned: int = 0
    orders_completed: int = 0
    total_revenue: Decimal = Decimal(0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemsScanned": self.items_scanned,
            "ordersCompleted": self.orders_completed,
            "totalRevenue": amount_to_json(self.total_revenue)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatsRecord":
        """Parse a persisted record, raising ValueError on bad data"""
        if not isinstance(data, dict):
            raise ValueError("Stats record must be an object")

        items_scanned = data.get("itemsScanned", 0)
        orders_completed = data.get("ordersCompleted", 0)
        for value in (items_scanned, orders_completed):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid counter value: {value!r}")

        revenue = data.get("totalRevenue", 0)
        if isinstance(revenue, bool) or not isinstance(revenue, (int, float, str)):
            raise ValueError(f"Invalid revenue value: {revenue!r}")
        total_revenue = to_amount(revenue)
        if not total_revenue.is_finite() or total_revenue < 0:
            raise ValueError(f"Invalid revenue value: {revenue!r}")

        return cls(items_scanned, orders_completed, total_revenue)


class Stats:
    """Items scanned, orders completed and revenue, saved after every change"""

    def __init__(self, store: JsonFileStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key
        self._record = self._load()

    def _load(self) -> StatsRecord:
        try:
            stored = self.store.get(self.key)
        except PersistenceError as e:
            logger.error(f"Failed to load stats from storage: {e}")
            return StatsRecord()

        if stored is None:
            return StatsRecord()

        try:
            record = StatsRecord.from_dict(json.loads(stored))
        except (ValueError, ArithmeticError) as e:
            logger.error(f"Stored stats are corrupt, starting from zero: {e}")
            return StatsRecord()

        logger.info(f"Loaded stats from storage: {record.to_dict()}")
        return record

    def _save(self):
        try:
            self.store.set(self.key, json.dumps(self._record.to_dict()))
        except PersistenceError as e:
            logger.error(f"Failed to save stats to storage: {e}")

    def increment(self, field: str, amount: Union[int, Amount] = 1) -> StatsRecord:
        """Add to one counter and persist the whole record"""
        if field in COUNT_FIELDS:
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise ValueError(f"{field} increments by whole counts")
            delta: Any = amount
        elif field in AMOUNT_FIELDS:
            delta = to_amount(amount)
        else:
            raise ValueError(f"Unknown stats field: {field}")

        if delta < 0:
            raise ValueError(f"{field} cannot decrease")

        self._record = replace(self._record, **{field: getattr(self._record, field) + delta})
        self._save()
        logger.debug(f"Stats {field}: {getattr(self._record, field)}")
        return self._record

    def increment_items_scanned(self, count: int = 1) -> StatsRecord:
        return self.increment("items_scanned", count)

    def increment_orders(self) -> StatsRecord:
        return self.increment("orders_completed", 1)

    def add_revenue(self, amount: Amount) -> StatsRecord:
        return self.increment("total_revenue", amount)

    def reset(self) -> StatsRecord:
        self._record = StatsRecord()
        self._save()
        logger.info("Stats reset")
        return self._record

    def snapshot(self) -> StatsRecord:
        return self._record
