"""POS session coordinating camera, detection, cart, stats and exports"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

from vision_pos.camera.overlay import draw_detections, encode_jpeg_base64
from vision_pos.camera.video_stream import VideoStream
from vision_pos.detection.classifier import ClassifierAdapter
from vision_pos.detection.pipeline import Detection, DetectionPipeline
from vision_pos.detection.poller import DetectionPoller
from vision_pos.errors import CameraAccessError, ModelLoadError, SessionError
from vision_pos.pos.cart import Cart
from vision_pos.pos.catalog import Catalog
from vision_pos.pos.exporter import Exporter, ExportResult
from vision_pos.pos.stats import STORAGE_KEY, Stats
from vision_pos.pos.storage import JsonFileStore
from vision_pos.pos.views import render_cart, render_detections, render_stats
from vision_pos.utils.helpers import amount_to_json
from vision_pos.utils.logger import logger


CAMERA_NOT_STARTED = "Please start the camera first!"
MODEL_NOT_READY = "AI Model is still loading. Please wait..."


class PosSession:
    """Owns every POS component and exposes the operator actions"""

    def __init__(
        self,
        catalog: Catalog,
        classifier: ClassifierAdapter,
        pipeline: DetectionPipeline,
        poller: DetectionPoller,
        camera: VideoStream,
        cart: Cart,
        stats: Stats,
        exporter: Exporter,
        currency: str = "DZD"
    ):
        self.catalog = catalog
        self.classifier = classifier
        self.pipeline = pipeline
        self.poller = poller
        self.camera = camera
        self.cart = cart
        self.stats = stats
        self.exporter = exporter
        self.currency = currency

        self.current_detections: List[Detection] = []
        self.model_error: Optional[str] = None
        self._checkout = asyncio.Lock()

    # Model

    async def load_model(self) -> Dict[str, Any]:
        """Load the classifier; failures are reported, not retried"""
        try:
            await self.classifier.load_async()
            self.model_error = None
        except ModelLoadError as e:
            self.model_error = str(e)
            logger.error(f"Model load error: {e}")
        return self.model_status()

    def model_status(self) -> Dict[str, Any]:
        status = self.classifier.status()
        status["error"] = self.model_error
        status["products"] = [
            f"{p.display_names} - {p.price} {self.currency}" for p in self.catalog.products()
        ]
        return status

    # Camera

    async def start_camera(self) -> Dict[str, Any]:
        try:
            await asyncio.get_running_loop().run_in_executor(None, self.camera.start)
        except CameraAccessError as e:
            logger.error(f"Camera error: {e.message}")
            return e.to_dict()

        self.stop_continuous_scan()
        return {"success": True}

    async def stop_camera(self) -> Dict[str, Any]:
        self.stop_continuous_scan()
        await asyncio.get_running_loop().run_in_executor(None, self.camera.stop)
        self.current_detections = []
        return {"success": True}

    def _require_ready(self):
        if not self.camera.is_running:
            raise SessionError(CAMERA_NOT_STARTED)
        if not self.classifier.is_loaded:
            raise SessionError(MODEL_NOT_READY)

    def annotated_frame(self) -> Optional[str]:
        """Latest camera frame with current detections drawn, as base64 JPEG"""
        ok, frame = self.camera.read()
        if not ok:
            return None
        return encode_jpeg_base64(draw_detections(frame, self.current_detections))

    # Scanning

    async def scan(self) -> Dict[str, Any]:
        """Single scan; the first detection goes straight into the cart"""
        self._require_ready()

        detections = await self.poller.run_once(self.camera)
        self.current_detections = detections

        added = None
        if detections:
            first = detections[0]
            added = self.cart.add_item(first.product, first.confidence)
            self.stats.increment_items_scanned(1)
            logger.info(f"Added {first.product.display_names.secondary} to cart")
        else:
            logger.info("No products detected")

        return {
            "detections": [d.to_dict() for d in detections],
            "added": added.to_dict() if added else None
        }

    def start_continuous_scan(self, interval_ms: Optional[int] = None) -> Dict[str, Any]:
        self._require_ready()
        self.poller.start(self._on_detections, interval_ms)
        return {"running": self.poller.is_running}

    def stop_continuous_scan(self) -> Dict[str, Any]:
        self.poller.stop()
        return {"running": False}

    def _on_detections(self, detections: List[Detection]):
        self.current_detections = detections

    # Cart

    def add_detected_to_cart(self, index: int) -> Optional[Dict[str, Any]]:
        if not 0 <= index < len(self.current_detections):
            return None

        detection = self.current_detections[index]
        item = self.cart.add_item(detection.product, detection.confidence)
        self.stats.increment_items_scanned(1)
        logger.info(f"Added {detection.product.display_names.secondary} to cart")
        return item.to_dict()

    def remove_item(self, item_id: int) -> Optional[Dict[str, Any]]:
        removed = self.cart.remove_item(item_id)
        return removed.to_dict() if removed else None

    def clear_cart(self):
        self.cart.clear()
        self.current_detections = []

    # Orders and exports

    async def complete_order(self) -> Dict[str, Any]:
        """Export the cart off the event loop, then record the sale and remove the sold items"""
        async with self._checkout:
            if self.cart.is_empty():
                return ExportResult(success=False, error="Cart is empty").to_dict()

            self.stop_continuous_scan()

            order = self.cart.order_snapshot()
            result = await asyncio.get_running_loop().run_in_executor(None, self.exporter.export_order, order)
            if not result.success:
                return result.to_dict()

            self.stats.increment_orders()
            self.stats.add_revenue(order.total)
            # Items added while the export was written stay in the cart
            for item in order.items:
                self.cart.remove_item(item.id)
            self.current_detections = []

        logger.info(f"Order completed: {result.order_id}")
        return {**result.to_dict(), "itemsCount": order.items_count, "total": amount_to_json(order.total)}

    async def export_all(self) -> Dict[str, Any]:
        stats = self.stats.snapshot()
        if stats.orders_completed == 0:
            return ExportResult(success=False, error="No orders to export yet").to_dict()
        result = await asyncio.get_running_loop().run_in_executor(None, self.exporter.export_all, stats)
        return result.to_dict()

    async def export_detection(self, index: int) -> Optional[Dict[str, Any]]:
        if not 0 <= index < len(self.current_detections):
            return None
        detection = self.current_detections[index]
        result = await asyncio.get_running_loop().run_in_executor(None, self.exporter.export_detection, detection)
        return result.to_dict()

    def reset_stats(self) -> Dict[str, Any]:
        return render_stats(self.stats.reset(), self.currency)

    # Views

    def snapshot(self) -> Dict[str, Any]:
        return {
            "cart": render_cart(self.cart, self.currency),
            "stats": render_stats(self.stats.snapshot(), self.currency),
            "detections": render_detections(self.current_detections, self.currency),
            "camera": {"running": self.camera.is_running, "frameSize": self.camera.frame_size},
            "continuousScan": self.poller.is_running,
            "modelReady": self.classifier.is_loaded
        }

    async def close(self):
        await self.poller.shutdown()
        if self.camera.is_running:
            await asyncio.get_running_loop().run_in_executor(None, self.camera.stop)


def build_session(
    config: Dict[str, Any],
    model_factory: Optional[Callable[[str, str], Any]] = None,
    camera: Optional[Any] = None,
) -> PosSession:
    """Wire a session from the loaded configuration"""
    detection_config = config.get("detection", {})
    model_config = config.get("model", {})

    catalog = Catalog.from_config(config.get("catalog", {}))
    classifier = ClassifierAdapter(model_config, model_factory=model_factory)
    pipeline = DetectionPipeline(classifier, catalog, detection_config)
    camera = camera or VideoStream(config.get("camera", {}))
    poller = DetectionPoller(
        pipeline,
        lambda: camera if camera.is_running else None,
        interval_ms=detection_config.get("poll_interval_ms", 500)
    )

    storage_config = config.get("storage", {})
    store = JsonFileStore(storage_config.get("path", "data/pos_storage.json"))
    stats = Stats(store, key=storage_config.get("stats_key", STORAGE_KEY))

    exporter = Exporter(
        config.get("export", {}).get("directory", "exports"),
        model_name=classifier.model_type
    )

    return PosSession(
        catalog=catalog,
        classifier=classifier,
        pipeline=pipeline,
        poller=poller,
        camera=camera,
        cart=Cart(),
        stats=stats,
        exporter=exporter,
        currency=config.get("app", {}).get("currency", "DZD")
    )
