import threading
import time
from types import SimpleNamespace

import numpy as np
import pytest
import torch

from vision_pos.detection.classifier import ClassifierAdapter
from vision_pos.detection.pipeline import DetectionPipeline
from vision_pos.pos.catalog import Catalog


class FakeModel:
    """Stands in for an Ultralytics classifier; returns fixed probabilities"""

    def __init__(self, probabilities, delay=0.0, gate=None):
        self.probabilities = probabilities
        self.delay = delay
        self.gate = gate
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, tensor, verbose=False):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()
        try:
            if self.gate is not None:
                self.gate.wait(5)
            if self.delay:
                time.sleep(self.delay)
            if isinstance(self.probabilities, Exception):
                raise self.probabilities
            return [SimpleNamespace(probs=SimpleNamespace(data=torch.tensor(self.probabilities)))]
        finally:
            with self._lock:
                self.active -= 1


class FakeCamera:
    """Frame source with the VideoStream surface used by the session"""

    def __init__(self, frame=None, running=True):
        self.frame = frame if frame is not None else np.zeros((480, 640, 3), dtype=np.uint8)
        self.running = running
        self.start_error = None

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.running = True

    def stop(self):
        self.running = False

    def read(self):
        if not self.running or self.frame is None:
            return False, None
        return True, self.frame.copy()

    @property
    def frame_size(self):
        if not self.running:
            return None
        return self.frame.shape[1], self.frame.shape[0]

    @property
    def is_running(self):
        return self.running


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def catalog():
    return Catalog()


@pytest.fixture
def fake_model():
    return FakeModel([0.82, 0.10, 0.08])


@pytest.fixture
def classifier(fake_model):
    adapter = ClassifierAdapter({"device": "cpu"}, model_factory=lambda path, device: fake_model)
    adapter.load()
    return adapter


@pytest.fixture
def pipeline(classifier, catalog):
    return DetectionPipeline(classifier, catalog, {})


@pytest.fixture
def config(tmp_path):
    return {
        "app": {"currency": "DZD"},
        "model": {"device": "cpu"},
        "detection": {"poll_interval_ms": 20},
        "storage": {"path": str(tmp_path / "storage.json")},
        "export": {"directory": str(tmp_path / "exports")},
        "logging": {"file": False, "level": "INFO"},
    }
