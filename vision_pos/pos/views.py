"""Display-ready projections of cart, stats and detections"""
from typing import Any, Dict, List

from vision_pos.pos.cart import Cart
from vision_pos.pos.stats import StatsRecord
from vision_pos.utils.helpers import format_amount


EMPTY_CART_MESSAGE = "Cart is empty. Start scanning products!"
NO_DETECTION_MESSAGE = "Point camera at products and scan"


def render_cart(cart: Cart, currency: str) -> Dict[str, Any]:
    items = []
    for item in cart.items():
        entry = {
            "id": item.id,
            "name": item.display_names.primary,
            "nameSecondary": item.display_names.secondary,
            "price": format_amount(item.price, currency)
        }
        if item.confidence is not None:
            entry["confidence"] = f"{round(item.confidence * 100)}% confidence"
        items.append(entry)

    return {
        "items": items,
        "message": EMPTY_CART_MESSAGE if not items else None,
        "itemCount": cart.item_count(),
        "total": format_amount(cart.total(), currency),
        "canCheckout": not cart.is_empty()
    }


def render_stats(stats: StatsRecord, currency: str) -> Dict[str, Any]:
    return {
        "itemsScanned": stats.items_scanned,
        "ordersCompleted": stats.orders_completed,
        "totalRevenue": format_amount(stats.total_revenue, currency)
    }


def render_detections(detections: List[Any], currency: str) -> Dict[str, Any]:
    entries: List[Dict[str, Any]] = [
        {
            "index": index,
            "name": detection.display_name,
            "confidence": f"{round(detection.confidence * 100)}%",
            "price": format_amount(detection.product.price, currency)
        }
        for index, detection in enumerate(detections)
    ]
    return {
        "detections": entries,
        "message": NO_DETECTION_MESSAGE if not entries else None
    }
