"""Order and stats export to JSON files"""
import json
import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from vision_pos.errors import ExportError
from vision_pos.pos.cart import Cart, OrderSnapshot
from vision_pos.pos.stats import StatsRecord
from vision_pos.utils.helpers import amount_to_json
from vision_pos.utils.logger import logger

if TYPE_CHECKING:
    from vision_pos.detection.pipeline import Detection


APPLICATION_NAME = "POS System with AI Camera Detection"


@dataclass(frozen=True)
class ExportResult:
    success: bool
    filename: Optional[str] = None
    order_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.success:
            result["filename"] = self.filename
            if self.order_id:
                result["orderId"] = self.order_id
        else:
            result["error"] = self.error
        return result


class Exporter:
    """Write order, aggregate and detection snapshots as JSON files"""

    def __init__(
        self,
        export_dir: str,
        model_name: str = "",
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.export_dir = Path(export_dir)
        self.model_name = model_name
        self._clock = clock or datetime.now

    def generate_id(self, prefix: str = "order") -> str:
        """Timestamp plus random suffix, e.g. order_1718000000000_a1b2c3"""
        millis = int(self._clock().timestamp() * 1000)
        return f"{prefix}_{millis}_{uuid.uuid4().hex[:6]}"

    def export_order(self, order: OrderSnapshot) -> ExportResult:
        """Export a single completed order"""
        order_id = self.generate_id()
        data = {
            "orderId": order_id,
            "timestamp": self._clock().isoformat(),
            "items": [item.to_dict() for item in order.items],
            "total": amount_to_json(order.total),
            "itemsCount": order.items_count
        }
        try:
            filename = self._write_json(data, f"{order_id}.json")
        except ExportError as e:
            logger.error(f"Order export failed: {e}")
            return ExportResult(success=False, error=str(e))

        logger.info(f"Order exported: {order_id}")
        return ExportResult(success=True, filename=filename, order_id=order_id)

    def export_current_cart(self, cart: Cart) -> ExportResult:
        if cart.is_empty():
            return ExportResult(success=False, error="Cart is empty")
        return self.export_order(cart.order_snapshot())

    def export_all(self, stats: StatsRecord) -> ExportResult:
        """Export the session-wide stats snapshot"""
        now = self._clock()
        data = {
            "exportTimestamp": now.isoformat(),
            "application": APPLICATION_NAME,
            "model": self.model_name,
            "stats": stats.to_dict()
        }
        try:
            filename = self._write_json(data, f"pos_export_{int(now.timestamp() * 1000)}.json")
        except ExportError as e:
            logger.error(f"Stats export failed: {e}")
            return ExportResult(success=False, error=str(e))

        logger.info("All data exported")
        return ExportResult(success=True, filename=filename)

    def export_detection(self, detection: "Detection") -> ExportResult:
        detection_id = self.generate_id("detection")
        data = {
            "detectionId": detection_id,
            "timestamp": self._clock().isoformat(),
            **detection.to_dict()
        }
        try:
            filename = self._write_json(data, f"{detection_id}.json")
        except ExportError as e:
            logger.error(f"Detection export failed: {e}")
            return ExportResult(success=False, error=str(e))

        logger.info(f"Detection exported: {detection_id}")
        return ExportResult(success=True, filename=filename)

    def _write_json(self, data: Dict[str, Any], filename: str) -> str:
        """Serialize first, then write through a temp file so no partial file is left"""
        try:
            payload = json.dumps(data, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise ExportError(f"Cannot serialize {filename}: {e}") from e

        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.export_dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, self.export_dir / filename)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise ExportError(f"Cannot write {filename}: {e}") from e

        return filename
