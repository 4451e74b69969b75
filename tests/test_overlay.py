import base64

import numpy as np

from vision_pos.camera.overlay import draw_detections, encode_jpeg_base64


def test_draw_detections_returns_annotated_copy(pipeline, frame):
    detections = pipeline.detect(frame)
    annotated = draw_detections(frame, detections)

    assert annotated.shape == frame.shape
    assert annotated.any()
    assert not frame.any()


def test_draw_without_detections(frame):
    assert not draw_detections(frame, []).any()


def test_encode_jpeg_base64(frame):
    encoded = encode_jpeg_base64(frame)
    assert base64.b64decode(encoded)[:2] == b"\xff\xd8"
    assert encode_jpeg_base64(None) is None
