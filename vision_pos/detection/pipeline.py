"""Frame to product detection pipeline"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from vision_pos.detection.classifier import ClassifierAdapter
from vision_pos.errors import ModelNotLoadedError
from vision_pos.pos.catalog import Catalog, Product
from vision_pos.utils.helpers import amount_to_json, centered_square, frame_size
from vision_pos.utils.logger import logger


EMPTY_LABEL = "empty"
DEFAULT_FRAME_SIZE = (640, 480)


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Detection:
    """Product recognized in a frame"""
    product: Product
    label: str
    confidence: float
    bounding_box: BoundingBox

    @property
    def display_name(self) -> str:
        return str(self.product.display_names)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product": {
                "id": self.product.id,
                "namePrimary": self.product.display_names.primary,
                "nameSecondary": self.product.display_names.secondary,
                "price": amount_to_json(self.product.price)
            },
            "label": self.label,
            "confidence": self.confidence,
            "displayName": self.display_name,
            "boundingBox": self.bounding_box.to_dict()
        }


class DetectionPipeline:
    """Classify a frame and map the winning label to at most one product"""

    def __init__(self, classifier: ClassifierAdapter, catalog: Catalog, config: Dict[str, Any]):
        self.classifier = classifier
        self.catalog = catalog
        self.min_confidence = config.get("min_confidence", 0.5)
        self.box_ratio = config.get("box_ratio", 0.6)
        self.empty_label = config.get("empty_label", EMPTY_LABEL)

    def detect(self, frame: Optional[np.ndarray]) -> List[Detection]:
        """Run one detection cycle; inference failures yield an empty list"""
        if not self.classifier.is_loaded:
            raise ModelNotLoadedError()

        try:
            classification = self.classifier.classify(frame)
        except ModelNotLoadedError:
            raise
        except Exception as e:
            logger.error(f"Inference error: {e}")
            return []

        if classification is None:
            return []

        label, confidence = classification.label, classification.confidence
        logger.debug(f"Prediction: {label} {confidence:.2f}")

        if not confidence >= self.min_confidence:
            return []

        if label == self.empty_label:
            logger.debug("Detected empty, ignoring")
            return []

        product = self.catalog.find_by_label(label)
        if product is None:
            logger.warning(f"No catalog product for label '{label}'")
            return []

        return [Detection(
            product=product,
            label=label,
            confidence=confidence,
            bounding_box=self._cosmetic_box(frame)
        )]

    def _cosmetic_box(self, frame: Optional[np.ndarray]) -> BoundingBox:
        """Square centered on the frame; the classifier does not localize"""
        width, height = frame_size(frame) or DEFAULT_FRAME_SIZE
        x, y, side = centered_square(width, height, self.box_ratio)
        return BoundingBox(x=x, y=y, width=side, height=side)
