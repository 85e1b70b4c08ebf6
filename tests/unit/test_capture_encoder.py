import base64

import numpy as np

from facerec.camera.backends.base import StillImage
from facerec.camera.backends.stub import synthetic_pixels
from facerec.camera.errors import CaptureFailedError
from facerec.pipeline.capture import (
    FAILURE_CAPTURE,
    FAILURE_ENCODING,
    CaptureEncoder,
    CaptureFailure,
    CaptureHandler,
    CaptureSuccess,
    LatestCapture,
    decode_capture,
)


def build_image(width=64, height=48):
    return StillImage.from_pixels(synthetic_pixels(width, height))


def test_round_trip_keeps_dimensions():
    result = CaptureEncoder(quality=85).encode(build_image(64, 48))
    assert isinstance(result, CaptureSuccess)
    decoded = decode_capture(result.encoded)
    assert decoded.shape[:2] == (48, 64)
    assert (result.width, result.height) == (64, 48)


def test_encoded_text_is_line_wrapped_base64():
    result = CaptureEncoder().encode(build_image(160, 120))
    lines = result.encoded.split("\n")
    assert result.encoded.endswith("\n")
    assert len(lines) > 2
    assert all(len(line) <= 76 for line in lines)
    jpeg = base64.b64decode(result.encoded)
    assert jpeg[:2] == b"\xff\xd8"
    assert len(jpeg) == result.jpeg_bytes


def test_unwrapped_variant_is_single_line():
    result = CaptureEncoder(line_wrap=False).encode(build_image())
    assert "\n" not in result.encoded


def test_image_released_after_success():
    image = build_image()
    CaptureEncoder().encode(image)
    assert image.closed
    assert image.pixels is None


def test_released_image_yields_encoding_failure():
    image = build_image()
    image.close()
    result = CaptureEncoder().encode(image)
    assert isinstance(result, CaptureFailure)
    assert result.kind == FAILURE_ENCODING


def test_empty_buffer_yields_encoding_failure_and_releases():
    image = StillImage(pixels=np.zeros((0, 0, 3), dtype=np.uint8), width=0, height=0)
    result = CaptureEncoder().encode(image)
    assert isinstance(result, CaptureFailure)
    assert image.closed


def test_handler_overwrites_slot():
    slot = LatestCapture()
    handler = CaptureHandler(CaptureEncoder(), slot)
    handler.on_capture_success(build_image(32, 32))
    first = slot.value
    handler.on_capture_success(build_image(64, 64))
    assert slot.value is not None
    assert slot.value != first
    assert slot.version == 2
    assert handler.completed == 2


def test_encoding_failure_leaves_slot_unchanged():
    slot = LatestCapture()
    handler = CaptureHandler(CaptureEncoder(), slot)
    handler.on_capture_success(build_image())
    kept = slot.value
    broken = build_image()
    broken.close()
    result = handler.on_capture_success(broken)
    assert isinstance(result, CaptureFailure)
    assert slot.value == kept
    assert handler.failed == 1


def test_capture_error_is_reported_not_stored():
    slot = LatestCapture()
    handler = CaptureHandler(CaptureEncoder(), slot)
    seen = []
    handler.add_listener(seen.append)
    result = handler.on_error(CaptureFailedError("sensor busy"))
    assert result == CaptureFailure(kind=FAILURE_CAPTURE, message="sensor busy")
    assert slot.value is None
    assert handler.last_failure == result
    assert seen == [result]
