import json
from datetime import datetime
from decimal import Decimal

import pytest

from vision_pos.errors import ExportError
from vision_pos.pos.cart import Cart
from vision_pos.pos.exporter import Exporter
from vision_pos.pos.stats import StatsRecord


NOW = datetime(2024, 5, 1, 12, 30, 0)


def make_exporter(tmp_path):
    return Exporter(str(tmp_path / "exports"), model_name="test-model", clock=lambda: NOW)


def test_export_order_writes_json(tmp_path, catalog):
    cart = Cart()
    cart.add_item(catalog.get_by_id(1), 0.82)
    cart.add_item(catalog.get_by_id(1))
    cart.add_item(catalog.get_by_id(2))

    result = make_exporter(tmp_path).export_current_cart(cart)

    assert result.success
    assert result.order_id.startswith("order_")
    data = json.loads((tmp_path / "exports" / result.filename).read_text(encoding="utf-8"))
    assert data["orderId"] == result.order_id
    assert data["timestamp"] == NOW.isoformat()
    assert data["total"] == 230
    assert data["itemsCount"] == 3
    assert [item["productId"] for item in data["items"]] == [1, 1, 2]
    assert data["items"][0]["namePrimary"] == "قهوة"


def test_empty_cart_is_not_exported(tmp_path):
    result = make_exporter(tmp_path).export_current_cart(Cart())
    assert not result.success
    assert result.error == "Cart is empty"
    assert not (tmp_path / "exports").exists()


def test_order_ids_are_unique(tmp_path):
    exporter = make_exporter(tmp_path)
    ids = {exporter.generate_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(i.startswith(f"order_{int(NOW.timestamp() * 1000)}_") for i in ids)


def test_export_all(tmp_path):
    record = StatsRecord(items_scanned=5, orders_completed=2, total_revenue=Decimal("260.5"))
    result = make_exporter(tmp_path).export_all(record)

    assert result.success
    assert result.filename.startswith("pos_export_")
    data = json.loads((tmp_path / "exports" / result.filename).read_text(encoding="utf-8"))
    assert data["exportTimestamp"] == NOW.isoformat()
    assert data["model"] == "test-model"
    assert data["stats"] == {"itemsScanned": 5, "ordersCompleted": 2, "totalRevenue": 260.5}


def test_export_detection(tmp_path, pipeline, frame):
    detection = pipeline.detect(frame)[0]
    result = make_exporter(tmp_path).export_detection(detection)

    assert result.success
    data = json.loads((tmp_path / "exports" / result.filename).read_text(encoding="utf-8"))
    assert data["detectionId"].startswith("detection_")
    assert data["label"] == "caffee"
    assert data["product"]["id"] == 1


def test_write_failure_reported_without_partial_file(tmp_path, catalog):
    blocker = tmp_path / "exports"
    blocker.write_text("not a directory", encoding="utf-8")
    cart = Cart()
    cart.add_item(catalog.get_by_id(2))

    result = Exporter(str(blocker)).export_current_cart(cart)

    assert not result.success
    assert result.error
    assert blocker.read_text(encoding="utf-8") == "not a directory"
    assert result.to_dict() == {"success": False, "error": result.error}


def test_unwritable_directory_raises_export_error(tmp_path):
    blocker = tmp_path / "exports"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(ExportError, match="Cannot write order.json"):
        Exporter(str(blocker))._write_json({"total": 1}, "order.json")


def test_unserializable_payload_raises_export_error(tmp_path):
    exporter = make_exporter(tmp_path)
    with pytest.raises(ExportError, match="Cannot serialize"):
        exporter._write_json({"total": object()}, "order.json")
    assert not (tmp_path / "exports").exists()
