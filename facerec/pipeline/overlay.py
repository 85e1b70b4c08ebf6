from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from facerec.camera.backends.base import BoundingBox
from facerec.runtime.executors import ThreadOwner

OVERLAY_HOLD_LAST = "hold_last"
OVERLAY_CLEAR_ON_EMPTY = "clear_on_empty"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class FaceOverlay:
    origin: Point
    size: Size


def to_face_overlay(box: BoundingBox) -> FaceOverlay:
    # Degenerate boxes pass through untouched.
    return FaceOverlay(
        origin=Point(box.left, box.top),
        size=Size(box.width, box.height),
    )


def to_face_overlays(boxes: Iterable[BoundingBox]) -> tuple[FaceOverlay, ...]:
    return tuple(to_face_overlay(box) for box in boxes)


class OverlayState:
    """Current overlay rectangles, replaced wholesale per analyzed frame."""

    def __init__(self, policy: str = OVERLAY_HOLD_LAST):
        if policy not in {OVERLAY_HOLD_LAST, OVERLAY_CLEAR_ON_EMPTY}:
            raise ValueError(f"Unknown overlay policy: {policy}")
        self._policy = policy
        self._overlays: tuple[FaceOverlay, ...] = ()
        self._listeners: list[Callable[[tuple[FaceOverlay, ...]], None]] = []
        self._owner = ThreadOwner("OverlayState")
        self.generation = 0

    @property
    def policy(self) -> str:
        return self._policy

    @property
    def overlays(self) -> tuple[FaceOverlay, ...]:
        return self._overlays

    def __len__(self) -> int:
        return len(self._overlays)

    def add_listener(self, listener: Callable[[tuple[FaceOverlay, ...]], None]) -> None:
        self._listeners.append(listener)

    def replace(self, boxes: Sequence[BoundingBox]) -> bool:
        self._owner.check()
        if not boxes:
            if self._policy == OVERLAY_HOLD_LAST or not self._overlays:
                return False
            self._publish(())
            return True
        self._publish(to_face_overlays(boxes))
        return True

    def _publish(self, overlays: tuple[FaceOverlay, ...]) -> None:
        self._overlays = overlays
        self.generation += 1
        for listener in list(self._listeners):
            listener(overlays)
