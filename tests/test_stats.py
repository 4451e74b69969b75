import json
from decimal import Decimal

import pytest

from vision_pos.errors import PersistenceError
from vision_pos.pos.stats import STORAGE_KEY, Stats, StatsRecord
from vision_pos.pos.storage import JsonFileStore


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(str(tmp_path / "storage.json"))


class BrokenStore:
    def get(self, key):
        raise PersistenceError("disk unavailable")

    def set(self, key, value):
        raise PersistenceError("disk unavailable")


def test_defaults_when_absent(store):
    assert Stats(store).snapshot() == StatsRecord()


def test_every_mutation_is_persisted(store):
    stats = Stats(store)
    stats.increment_items_scanned(3)

    persisted = json.loads(store.get(STORAGE_KEY))
    assert persisted == {"itemsScanned": 3, "ordersCompleted": 0, "totalRevenue": 0}


def test_reload_reproduces_counters(store):
    stats = Stats(store)
    stats.increment_items_scanned(2)
    stats.increment_orders()
    stats.add_revenue(Decimal("130.5"))

    restarted = Stats(store)
    assert restarted.snapshot() == stats.snapshot()
    assert restarted.snapshot().total_revenue == Decimal("130.5")


def test_revenue_is_sum_of_order_totals(store):
    totals = [Decimal(230), Decimal(100), Decimal(30), Decimal(60)]
    stats = Stats(store)
    for total in totals:
        stats.increment_orders()
        stats.add_revenue(total)

    record = Stats(store).snapshot()
    assert record.orders_completed == len(totals)
    assert record.total_revenue == sum(totals)


def test_reset(store):
    stats = Stats(store)
    stats.increment_items_scanned()
    stats.reset()
    assert Stats(store).snapshot() == StatsRecord()


@pytest.mark.parametrize("raw", [
    "{not json",
    "[1, 2]",
    json.dumps({"itemsScanned": -1, "ordersCompleted": 0, "totalRevenue": 0}),
    json.dumps({"itemsScanned": "3", "ordersCompleted": 0, "totalRevenue": 0}),
    json.dumps({"itemsScanned": 1, "ordersCompleted": 0, "totalRevenue": -5}),
    json.dumps({"itemsScanned": 1, "ordersCompleted": 0, "totalRevenue": "NaN"}),
])
def test_corrupt_record_falls_back_to_zero(store, raw):
    store.set(STORAGE_KEY, raw)
    assert Stats(store).snapshot() == StatsRecord()


def test_corrupt_storage_file_falls_back_to_zero(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("garbage", encoding="utf-8")
    stats = Stats(JsonFileStore(str(path)))
    assert stats.snapshot() == StatsRecord()

    stats.increment_orders()
    assert Stats(JsonFileStore(str(path))).snapshot().orders_completed == 1


def test_storage_failures_are_not_fatal():
    stats = Stats(BrokenStore())
    assert stats.snapshot() == StatsRecord()
    assert stats.increment_items_scanned().items_scanned == 1


def test_increment_by_field_name(store):
    stats = Stats(store)
    stats.increment("items_scanned", 4)
    stats.increment("total_revenue", 30)
    assert stats.snapshot() == StatsRecord(4, 0, Decimal(30))


@pytest.mark.parametrize("field,amount", [
    ("items_scanned", -1),
    ("orders_completed", 1.5),
    ("total_revenue", -10),
    ("unknown", 1),
])
def test_invalid_increments_rejected(store, field, amount):
    stats = Stats(store)
    with pytest.raises(ValueError):
        stats.increment(field, amount)
    assert stats.snapshot() == StatsRecord()


def test_other_keys_are_preserved(store):
    store.set("other", "value")
    Stats(store).increment_orders()
    assert store.get("other") == "value"
