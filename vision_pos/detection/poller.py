"""Continuous detection at a fixed interval"""
import asyncio
from enum import Enum
from typing import Any, Callable, List, Optional

from vision_pos.detection.pipeline import Detection, DetectionPipeline
from vision_pos.errors import ModelNotLoadedError
from vision_pos.utils.logger import logger


DetectionCallback = Callable[[List[Detection]], None]
# Returns an object with read() -> (ok, frame), or None when no camera is available
FrameProvider = Callable[[], Optional[Any]]


class PollerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class _RunToken:
    """Cancellation token for one start/stop run"""

    def __init__(self, callback: DetectionCallback, interval: float):
        self.callback: Optional[DetectionCallback] = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        self.callback = None


class DetectionPoller:
    """Self-rescheduling detection loop; cycles never overlap"""

    def __init__(self, pipeline: DetectionPipeline, frame_provider: FrameProvider, interval_ms: int = 500):
        if interval_ms <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval_ms} ms")
        self.pipeline = pipeline
        self.frame_provider = frame_provider
        self.interval_ms = interval_ms

        self._state = PollerState.IDLE
        self._token: Optional[_RunToken] = None
        self._task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Future] = None

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PollerState.RUNNING

    def start(self, callback: DetectionCallback, interval_ms: Optional[int] = None) -> bool:
        """Start polling; no-op if already running or the model is not ready"""
        interval_ms = self.interval_ms if interval_ms is None else interval_ms
        if interval_ms <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval_ms} ms")

        if self._state is PollerState.RUNNING:
            return False

        if not self.pipeline.classifier.is_loaded:
            logger.error("Model not loaded, continuous detection not started")
            return False

        self._token = _RunToken(callback, interval_ms / 1000)
        self._state = PollerState.RUNNING
        self._task = asyncio.create_task(self._run(self._token))

        logger.info("Continuous detection started")
        return True

    def stop(self) -> bool:
        """Cancel the pending wait; a cycle still in flight is discarded"""
        if self._state is PollerState.IDLE:
            return False

        if self._token:
            self._token.cancel()
            self._token = None
        if self._task:
            self._task.cancel()

        self._state = PollerState.IDLE
        logger.info("Continuous detection stopped")
        return True

    async def shutdown(self):
        """Stop and wait for the loop task to finish"""
        task = self._task
        self.stop()
        self._task = None
        if task:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._inflight is not None:
            await asyncio.wait({self._inflight})

    def _detect_once(self, source: Any) -> List[Detection]:
        ok, frame = source.read()
        return self.pipeline.detect(frame if ok else None)

    async def run_once(self, source: Any) -> List[Detection]:
        """Run one detection cycle off the event loop, after any cycle still in flight"""
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})

        self._inflight = asyncio.get_running_loop().run_in_executor(None, self._detect_once, source)
        return await asyncio.shield(self._inflight)

    async def _run(self, token: _RunToken):
        while not token.cancelled:
            source = self.frame_provider()

            if source is not None:
                try:
                    detections = await self.run_once(source)
                except ModelNotLoadedError as e:
                    logger.error(f"Continuous detection halted: {e}")
                    if self._token is token:
                        self._token = None
                        self._state = PollerState.IDLE
                    return

                callback = token.callback
                if token.cancelled or callback is None:
                    break
                callback(detections)

            await asyncio.sleep(token.interval)
