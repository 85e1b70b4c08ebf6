from __future__ import annotations

import threading
import time
from typing import Iterable, Optional, Sequence

import numpy as np

from facerec.camera.backends.base import BoundingBox, Frame, StillImage
from facerec.camera.errors import CaptureFailedError


def synthetic_pixels(width: int, height: int) -> np.ndarray:
    """BGR gradient image, enough texture for a JPEG encoder to chew on."""
    xs = np.linspace(0, 255, width, dtype=np.uint8)
    ys = np.linspace(0, 255, height, dtype=np.uint8)
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, :, 0] = xs[np.newaxis, :]
    pixels[:, :, 1] = ys[:, np.newaxis]
    pixels[:, :, 2] = 128
    return pixels


class StubFrameSource:
    name = "stub"

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        max_frames: Optional[int] = None,
        fail_captures: bool = False,
        mirrored: bool = True,
    ):
        self.width = width
        self.height = height
        self.max_frames = max_frames
        self.fail_captures = fail_captures
        self.mirrored = mirrored
        self.opened = False
        self.frames_read = 0
        self.stills_captured = 0
        self.last_still: Optional[StillImage] = None
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        return True

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.opened = False

    def read_frame(self) -> Optional[Frame]:
        if not self.opened:
            return None
        if self.max_frames is not None and self.frames_read >= self.max_frames:
            return None
        self.frames_read += 1
        return Frame(
            pixels=synthetic_pixels(self.width, self.height),
            index=self.frames_read,
            timestamp=time.monotonic(),
        )

    def capture_still(self) -> StillImage:
        if self.fail_captures:
            raise CaptureFailedError("Stub capture failure.")
        image = StillImage.from_pixels(synthetic_pixels(self.width, self.height))
        with self._lock:
            self.stills_captured += 1
            self.last_still = image
        return image


class ScriptedFaceDetector:
    """Returns a prepared list of boxes per call, then nothing."""

    name = "scripted"

    def __init__(self, script: Iterable[Sequence[BoundingBox]] = ()):
        self._script = [list(boxes) for boxes in script]
        self.calls = 0

    def detect(self, pixels: np.ndarray) -> list[BoundingBox]:
        index = self.calls
        self.calls += 1
        if index < len(self._script):
            return list(self._script[index])
        return []

    def close(self) -> None:
        self._script = []
