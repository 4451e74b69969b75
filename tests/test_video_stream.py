import cv2
import numpy as np
import pytest

from vision_pos.camera.video_stream import VideoStream
from vision_pos.errors import CameraAccessError, CameraErrorKind


class FakeCapture:
    def __init__(self, opened=True, width=640, height=480, frames=True):
        self.opened = opened
        self.props = {cv2.CAP_PROP_FRAME_WIDTH: width, cv2.CAP_PROP_FRAME_HEIGHT: height}
        self.frames = frames
        self.released = False

    def isOpened(self):
        return self.opened and not self.released

    def set(self, prop, value):
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        if not self.frames:
            return False, None
        return True, np.zeros((480, 640, 3), dtype=np.uint8)

    def release(self):
        self.released = True


def make_stream(capture, source=0):
    stream = VideoStream({"source": source, "open_timeout": 0.5})
    stream._open_capture = lambda: capture
    return stream


def test_start_read_stop():
    stream = make_stream(FakeCapture())
    stream.start()
    try:
        assert stream.is_running
        ok, frame = stream.read()
        assert ok
        assert frame.shape == (480, 640, 3)
        assert stream.frame_size == (640, 480)
    finally:
        stream.stop()

    assert not stream.is_running
    assert stream.read() == (False, None)
    assert stream.frame_size is None


def test_missing_camera_index():
    with pytest.raises(CameraAccessError) as info:
        make_stream(FakeCapture(opened=False), source=3).start()
    assert info.value.kind is CameraErrorKind.NOT_FOUND


def test_missing_device_path():
    with pytest.raises(CameraAccessError) as info:
        make_stream(FakeCapture(opened=False), source="/dev/video-missing-test").start()
    assert info.value.kind is CameraErrorKind.NOT_FOUND


def test_unsupported_settings():
    capture = FakeCapture(width=0, height=0)
    with pytest.raises(CameraAccessError) as info:
        make_stream(capture).start()
    assert info.value.kind is CameraErrorKind.SETTINGS
    assert capture.released


def test_no_frames_means_busy():
    stream = make_stream(FakeCapture(frames=False))
    with pytest.raises(CameraAccessError) as info:
        stream.start()
    assert info.value.kind is CameraErrorKind.BUSY
    assert not stream.is_running


def test_error_messages_are_distinct():
    messages = {CameraAccessError(kind).message for kind in CameraErrorKind}
    assert len(messages) == len(CameraErrorKind)
    assert "boom" in CameraAccessError(CameraErrorKind.UNKNOWN, "boom").message
