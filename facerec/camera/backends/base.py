from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        return cls(left=x, top=y, right=x + w, bottom=y + h)


@dataclass(frozen=True)
class Frame:
    pixels: np.ndarray
    index: int
    timestamp: float

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass
class StillImage:
    """Full-resolution capture whose buffer must be released with ``close``."""

    pixels: Optional[np.ndarray]
    width: int
    height: int
    closed: bool = field(default=False)

    @classmethod
    def from_pixels(cls, pixels: np.ndarray) -> "StillImage":
        height, width = pixels.shape[:2]
        return cls(pixels=pixels, width=int(width), height=int(height))

    def close(self) -> None:
        self.pixels = None
        self.closed = True

    def __enter__(self) -> "StillImage":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


@dataclass(frozen=True)
class FaceDetectorOptions:
    performance_mode: str = "accurate"
    landmark_mode: str = "none"
    classification_mode: str = "none"
    min_face_size: int = 30

    def __post_init__(self) -> None:
        if self.performance_mode not in {"accurate", "fast"}:
            raise ValueError(f"Unknown performance mode: {self.performance_mode}")
        if self.landmark_mode != "none":
            raise ValueError("Landmark extraction is not supported.")
        if self.classification_mode != "none":
            raise ValueError("Face classification is not supported.")


class FrameSource(Protocol):
    name: str
    mirrored: bool

    def is_available(self) -> bool:
        ...

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def read_frame(self) -> Optional[Frame]:
        ...

    def capture_still(self) -> StillImage:
        ...


class FaceDetector(Protocol):
    name: str

    def detect(self, pixels: np.ndarray) -> list[BoundingBox]:
        ...

    def close(self) -> None:
        ...
