from __future__ import annotations

from pydantic import BaseModel


class CameraStatus(BaseModel):
    backend: str
    available: bool
    lens_facing: str
    message: str


class ScreenStatus(BaseModel):
    permission: str
    backend: str | None = None
    pipeline_active: bool = False
    overlays: int = 0
    captures_requested: int = 0
    captures_skipped: int = 0
    captures_completed: int = 0
    captures_failed: int = 0
    has_capture: bool = False
    camera_error: str | None = None
    last_failure: str | None = None
