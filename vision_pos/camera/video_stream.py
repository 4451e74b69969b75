"""Video stream handling"""
import os
import time
from threading import Event, Lock, Thread
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np

from vision_pos.errors import CameraAccessError, CameraErrorKind
from vision_pos.utils.helpers import frame_size
from vision_pos.utils.logger import logger


class VideoStream:
    """Threaded video stream reader keeping only the latest frame"""

    def __init__(self, camera_config: Dict[str, Any]):
        self.source = camera_config.get("source", 0)
        self.name = camera_config.get("name", "camera")
        self.target_fps = camera_config.get("fps", 30)
        self.resolution = camera_config.get("resolution", {"width": 1280, "height": 720})
        self.open_timeout = camera_config.get("open_timeout", 3.0)

        self.cap: Optional[cv2.VideoCapture] = None
        self.running = False
        self.thread: Optional[Thread] = None
        self.lock = Lock()
        self.frame_count = 0
        self.current_frame: Optional[np.ndarray] = None
        self._first_frame = Event()

    def _open_capture(self) -> cv2.VideoCapture:
        return cv2.VideoCapture(self.source)

    def _classify_open_failure(self) -> CameraAccessError:
        """Map a failed open to a camera error kind"""
        if isinstance(self.source, str) and self.source.startswith("/dev/"):
            if not os.path.exists(self.source):
                return CameraAccessError(CameraErrorKind.NOT_FOUND, self.source)
            if not os.access(self.source, os.R_OK):
                return CameraAccessError(CameraErrorKind.PERMISSION, self.source)
            return CameraAccessError(CameraErrorKind.BUSY, self.source)
        if isinstance(self.source, int):
            return CameraAccessError(CameraErrorKind.NOT_FOUND, f"index {self.source}")
        return CameraAccessError(CameraErrorKind.UNKNOWN, f"cannot open {self.source}")

    def start(self):
        """Start the video stream, raising CameraAccessError on failure"""
        if self.running:
            return

        try:
            self.cap = self._open_capture()
        except cv2.error as e:
            raise CameraAccessError(CameraErrorKind.UNKNOWN, str(e)) from e

        if not self.cap.isOpened():
            self.cap = None
            error = self._classify_open_failure()
            logger.error(f"Failed to open camera {self.name}: {error.message}")
            raise error

        # Set resolution
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution["width"])
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution["height"])
        self.cap.set(cv2.CAP_PROP_FPS, self.target_fps)

        if not self.cap.get(cv2.CAP_PROP_FRAME_WIDTH) or not self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT):
            self.cap.release()
            self.cap = None
            raise CameraAccessError(CameraErrorKind.SETTINGS, str(self.resolution))

        self._first_frame.clear()
        with self.lock:
            self.current_frame = None
            self.frame_count = 0

        self.running = True
        self.thread = Thread(target=self._capture_loop, daemon=True)
        self.thread.start()

        if not self.wait_until_ready(self.open_timeout):
            self.stop()
            raise CameraAccessError(CameraErrorKind.BUSY, f"no frames from {self.source}")

        logger.info(f"Camera {self.name} started successfully")

    def _capture_loop(self):
        """Continuous frame capture loop"""
        while self.running:
            if self.cap is None:
                break

            ret, frame = self.cap.read()

            if not ret:
                logger.warning(f"Failed to read frame from camera {self.name}")
                time.sleep(0.05)
                continue

            with self.lock:
                self.current_frame = frame
                self.frame_count += 1
            self._first_frame.set()

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Read the latest frame"""
        with self.lock:
            if self.current_frame is None:
                return False, None
            return True, self.current_frame.copy()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the first frame (and so its dimensions) is known"""
        return self._first_frame.wait(timeout)

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        with self.lock:
            return frame_size(self.current_frame)

    def stop(self):
        """Stop the video stream"""
        self.running = False
        if self.thread:
            self.thread.join(timeout=2.0)
            self.thread = None
        if self.cap:
            self.cap.release()
            self.cap = None
        with self.lock:
            self.current_frame = None
        self._first_frame.clear()
        logger.info(f"Camera {self.name} stopped")

    @property
    def is_running(self) -> bool:
        return self.running and self.cap is not None and self.cap.isOpened()
