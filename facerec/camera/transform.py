from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from facerec.camera.backends.base import BoundingBox


@dataclass(frozen=True)
class ViewTransform:
    """Maps frame pixel coordinates onto the preview widget.

    ``fill_center`` scales the frame to cover the view and crops the
    overflow evenly on both sides; ``fit_center`` letterboxes instead.
    """

    scale: float
    offset_x: float
    offset_y: float

    @classmethod
    def identity(cls) -> "ViewTransform":
        return cls(scale=1.0, offset_x=0.0, offset_y=0.0)

    @classmethod
    def between(
        cls,
        frame_size: tuple[int, int],
        view_size: Optional[tuple[int, int]],
        scale_type: str = "fill_center",
    ) -> "ViewTransform":
        frame_w, frame_h = frame_size
        if view_size is None or frame_w <= 0 or frame_h <= 0:
            return cls.identity()
        view_w, view_h = view_size
        if view_w <= 0 or view_h <= 0:
            return cls.identity()
        ratios = (view_w / frame_w, view_h / frame_h)
        scale = max(ratios) if scale_type == "fill_center" else min(ratios)
        return cls(
            scale=scale,
            offset_x=(view_w - frame_w * scale) / 2.0,
            offset_y=(view_h - frame_h * scale) / 2.0,
        )

    def map_point(self, x: float, y: float) -> tuple[float, float]:
        return x * self.scale + self.offset_x, y * self.scale + self.offset_y

    def map_box(self, box: BoundingBox) -> BoundingBox:
        left, top = self.map_point(box.left, box.top)
        right, bottom = self.map_point(box.right, box.bottom)
        return BoundingBox(left=left, top=top, right=right, bottom=bottom)
