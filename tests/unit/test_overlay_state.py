import threading

import pytest

from facerec.camera.backends.base import BoundingBox
from facerec.pipeline.overlay import OVERLAY_CLEAR_ON_EMPTY, OverlayState, Point


def build_boxes(*origins):
    return [BoundingBox.from_xywh(x, y, 40, 40) for x, y in origins]


def test_replace_swaps_whole_collection():
    state = OverlayState()
    assert state.replace(build_boxes((0, 0), (100, 100)))
    assert state.replace(build_boxes((300, 50)))
    assert len(state) == 1
    assert state.overlays[0].origin == Point(300, 50)


def test_empty_frame_holds_previous_overlays():
    state = OverlayState()
    state.replace(build_boxes((10, 20), (30, 40)))
    before = state.overlays
    assert state.replace([]) is False
    assert state.overlays == before
    assert state.generation == 1


def test_clear_on_empty_policy_clears_once():
    state = OverlayState(policy=OVERLAY_CLEAR_ON_EMPTY)
    seen = []
    state.add_listener(seen.append)
    state.replace(build_boxes((10, 20)))
    assert state.replace([]) is True
    assert state.overlays == ()
    assert state.replace([]) is False
    assert len(seen) == 2


def test_listeners_receive_new_collection():
    state = OverlayState()
    seen = []
    state.add_listener(seen.append)
    state.replace(build_boxes((1, 2)))
    assert seen == [state.overlays]


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        OverlayState(policy="blink")


def test_writes_from_second_thread_are_rejected():
    state = OverlayState()
    state.replace(build_boxes((1, 1)))
    errors = []

    def _write():
        try:
            state.replace(build_boxes((2, 2)))
        except RuntimeError as exc:
            errors.append(exc)

    worker = threading.Thread(target=_write)
    worker.start()
    worker.join()
    assert len(errors) == 1
    assert state.overlays[0].origin == Point(1, 1)
