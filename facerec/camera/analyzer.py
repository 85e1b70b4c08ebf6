from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from facerec.camera.backends.base import BoundingBox, FaceDetector, Frame
from facerec.camera.transform import ViewTransform

COORDINATE_SYSTEM_ORIGINAL = "original"
COORDINATE_SYSTEM_VIEW_REFERENCED = "view_referenced"


@dataclass(frozen=True)
class AnalysisResult:
    frame_index: int
    frame_size: tuple[int, int]
    boxes: tuple[BoundingBox, ...]


class FaceAnalyzer:
    """Runs the detector on a frame and hands boxes to a consumer.

    ``analyze`` runs on the camera's analysis thread; ``deliver`` is what
    the controller posts to the main executor.
    """

    def __init__(
        self,
        detector: FaceDetector,
        consumer: Callable[[AnalysisResult], None],
        coordinate_system: str = COORDINATE_SYSTEM_VIEW_REFERENCED,
        view_size: Callable[[], Optional[tuple[int, int]]] = lambda: None,
        scale_type: str = "fill_center",
    ):
        if coordinate_system not in {COORDINATE_SYSTEM_ORIGINAL, COORDINATE_SYSTEM_VIEW_REFERENCED}:
            raise ValueError(f"Unknown coordinate system: {coordinate_system}")
        self._detector = detector
        self._consumer = consumer
        self._coordinate_system = coordinate_system
        self._view_size = view_size
        self._scale_type = scale_type

    @property
    def detector(self) -> FaceDetector:
        return self._detector

    def analyze(self, frame: Frame) -> AnalysisResult:
        boxes = self._detector.detect(frame.pixels)
        frame_size = (frame.width, frame.height)
        if self._coordinate_system == COORDINATE_SYSTEM_VIEW_REFERENCED:
            transform = ViewTransform.between(frame_size, self._view_size(), self._scale_type)
            boxes = [transform.map_box(box) for box in boxes]
        return AnalysisResult(frame_index=frame.index, frame_size=frame_size, boxes=tuple(boxes))

    def deliver(self, result: AnalysisResult) -> None:
        self._consumer(result)

    def close(self) -> None:
        self._detector.close()
