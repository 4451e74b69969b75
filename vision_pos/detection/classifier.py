"""Image classification using an Ultralytics classification model"""
import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import cv2
import numpy as np
import torch
from ultralytics import YOLO

from vision_pos.errors import InferenceError, ModelLoadError, ModelNotLoadedError
from vision_pos.utils.helpers import frame_size
from vision_pos.utils.logger import logger


DEFAULT_LABELS = ["caffee", "water", "empty"]


@dataclass(frozen=True)
class Classification:
    """Winning label for one frame"""
    label: str
    confidence: float
    probabilities: Dict[str, float]


def load_yolo(path: str, device: str) -> Any:
    """Load an Ultralytics model from disk"""
    if not Path(path).exists():
        raise FileNotFoundError(f"Model artifact not found: {path}")
    return YOLO(path).to(device)


def select_device(preferred: str = "auto") -> str:
    if preferred != "auto":
        return preferred
    return "cuda" if torch.cuda.is_available() else "cpu"


def preprocess_frame(frame: np.ndarray, size: int) -> torch.Tensor:
    """Resize a BGR frame to size x size and return a 1x3xHxW float tensor in [0, 1]"""
    resized = cv2.resize(frame, (size, size), interpolation=cv2.INTER_NEAREST)
    rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)
    chw = np.ascontiguousarray(rgb.transpose(2, 0, 1), dtype=np.float32) / 255.0
    return torch.from_numpy(chw).unsqueeze(0)


class ClassifierAdapter:
    """Loads the model once and classifies frames into a fixed label set"""

    def __init__(self, config: Dict[str, Any], model_factory: Optional[Callable[[str, str], Any]] = None):
        self.config = config
        self.model_path = config.get("path", "model/pos_classifier.pt")
        self.labels: List[str] = list(config.get("labels", DEFAULT_LABELS))
        self.input_size = config.get("input_size", 224)
        self.device = select_device(config.get("device", "auto"))
        self.model_type = config.get("type", "Ultralytics classifier")

        self._model_factory = model_factory or load_yolo
        self.model: Optional[Any] = None
        self._loaded = False
        self._loading = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_loading(self) -> bool:
        return self._loading.locked()

    def load(self) -> bool:
        """Load the model; False if another load is already in flight"""
        if self._loaded:
            logger.debug("Model already loaded")
            return True

        if not self._loading.acquire(blocking=False):
            logger.info("Model already loading...")
            return False

        try:
            logger.info(f"Loading classifier from {self.model_path} on {self.device}...")
            self.model = self._model_factory(self.model_path, self.device)
            self._loaded = True
            logger.info("Classifier loaded successfully")
            return True
        except Exception as e:
            self.model = None
            logger.error(f"Failed to load classifier: {e}")
            raise ModelLoadError(str(e)) from e
        finally:
            self._loading.release()

    async def load_async(self) -> bool:
        return await asyncio.get_running_loop().run_in_executor(None, self.load)

    def classify(self, frame: Optional[np.ndarray]) -> Optional[Classification]:
        """Classify a BGR frame; None when the frame has no pixels yet"""
        if not self._loaded or self.model is None:
            raise ModelNotLoadedError()

        if frame_size(frame) is None:
            return None

        tensor = preprocess_frame(frame, self.input_size).to(self.device)
        with torch.no_grad():
            results = self.model(tensor, verbose=False)
            probabilities = results[0].probs.data.float().cpu().numpy().copy()
        # Free per-frame tensors before returning
        del tensor, results

        if probabilities.shape != (len(self.labels),):
            raise InferenceError(f"Model returned {probabilities.size} scores for {len(self.labels)} labels")
        if not np.isfinite(probabilities).all():
            raise InferenceError("Model returned non-finite scores")

        # argmax keeps the first label on ties
        index = int(np.argmax(probabilities))
        return Classification(
            label=self.labels[index],
            confidence=float(probabilities[index]),
            probabilities={label: float(p) for label, p in zip(self.labels, probabilities)}
        )

    def status(self) -> Dict[str, Any]:
        return {
            "loaded": self._loaded,
            "loading": self.is_loading,
            "model_type": self.model_type,
            "classes": list(self.labels)
        }
