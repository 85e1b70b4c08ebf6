import pytest

from facerec.camera.backends.base import BoundingBox, StillImage
from facerec.camera.backends.stub import synthetic_pixels
from facerec.camera.errors import CaptureFailedError
from facerec.pipeline.capture import (
    CAPTURE_SINGLE_FLIGHT,
    CaptureEncoder,
    CaptureHandler,
    CaptureTrigger,
    LatestCapture,
)
from facerec.runtime.executors import InlineExecutor


class RecordingCamera:
    def __init__(self):
        self.requests = []

    def take_picture(self, executor, callback):
        self.requests.append(callback)


def build_trigger(policy="unthrottled"):
    camera = RecordingCamera()
    handler = CaptureHandler(CaptureEncoder(), LatestCapture())
    trigger = CaptureTrigger(camera, InlineExecutor(), handler, policy=policy)
    return trigger, camera, handler


FACE = [BoundingBox.from_xywh(100, 200, 50, 50)]


def test_every_detecting_frame_requests_capture():
    trigger, camera, _ = build_trigger()
    for _ in range(3):
        assert trigger.on_analysis(FACE) is True
    assert len(camera.requests) == 3
    assert trigger.requested == 3
    assert trigger.in_flight == 3


def test_empty_frame_requests_nothing():
    trigger, camera, _ = build_trigger()
    assert trigger.on_analysis([]) is False
    assert camera.requests == []


def test_single_flight_skips_while_pending():
    trigger, camera, handler = build_trigger(policy=CAPTURE_SINGLE_FLIGHT)
    trigger.on_analysis(FACE)
    trigger.on_analysis(FACE)
    trigger.on_analysis(FACE)
    assert len(camera.requests) == 1
    assert trigger.skipped == 2

    camera.requests[0].on_capture_success(StillImage.from_pixels(synthetic_pixels(32, 32)))
    assert trigger.in_flight == 0
    assert handler.completed == 1
    assert trigger.on_analysis(FACE) is True
    assert len(camera.requests) == 2


def test_failed_capture_frees_the_slot():
    trigger, camera, handler = build_trigger(policy=CAPTURE_SINGLE_FLIGHT)
    trigger.on_analysis(FACE)
    camera.requests[0].on_error(CaptureFailedError())
    assert trigger.in_flight == 0
    assert handler.failed == 1


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        handler = CaptureHandler(CaptureEncoder(), LatestCapture())
        CaptureTrigger(RecordingCamera(), InlineExecutor(), handler, policy="burst")
