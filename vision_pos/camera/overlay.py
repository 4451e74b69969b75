"""Detection overlay drawing"""
import base64
from typing import List, Optional

import cv2
import numpy as np

from vision_pos.detection.pipeline import Detection


# BGR: blue, green, amber, red, purple
COLORS = [
    (246, 130, 59),
    (129, 185, 16),
    (11, 158, 245),
    (68, 68, 239),
    (246, 92, 139),
]

LABEL_HEIGHT = 30
LABEL_PADDING = 8
BAR_HEIGHT = 6


def draw_detections(frame: np.ndarray, detections: List[Detection]) -> np.ndarray:
    """Draw bounding boxes, labels and confidence bars on a copy of the frame"""
    annotated = frame.copy()

    for index, detection in enumerate(detections):
        color = COLORS[index % len(COLORS)]
        box = detection.bounding_box
        x1, y1 = int(box.x), int(box.y)
        x2, y2 = int(box.x + box.width), int(box.y + box.height)

        # Bounding box
        cv2.rectangle(annotated, (x1, y1), (x2, y2), color, 4)

        # Label plate; Hershey fonts only cover ASCII so use the secondary name
        text = f"{detection.product.display_names.secondary} {round(detection.confidence * 100)}%"
        (text_width, _), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 2)
        top = max(y1 - LABEL_HEIGHT, 0)
        cv2.rectangle(annotated, (x1, top), (x1 + text_width + LABEL_PADDING * 2, top + LABEL_HEIGHT), color, -1)
        cv2.putText(annotated, text, (x1 + LABEL_PADDING, top + LABEL_HEIGHT - 9),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)

        # Confidence bar
        bar_y = y2 + 5
        cv2.rectangle(annotated, (x1, bar_y), (x2, bar_y + BAR_HEIGHT), (80, 80, 80), -1)
        filled = x1 + int((x2 - x1) * detection.confidence)
        cv2.rectangle(annotated, (x1, bar_y), (filled, bar_y + BAR_HEIGHT), color, -1)

    return annotated


def encode_jpeg_base64(frame: Optional[np.ndarray]) -> Optional[str]:
    """Encode a frame as base64 JPEG"""
    if frame is None:
        return None

    ok, buffer = cv2.imencode('.jpg', frame)
    if not ok:
        return None
    return base64.b64encode(buffer).decode('utf-8')
