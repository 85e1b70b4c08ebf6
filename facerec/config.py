from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


# Load environment variables from a local .env file if present.
load_dotenv()


@dataclass(frozen=True)
class CameraConfig:
    backend: str
    device_index: int
    lens_facing: str
    width: int
    height: int
    preview_scale_type: str


@dataclass(frozen=True)
class DetectorConfig:
    performance_mode: str
    min_face_size: int


@dataclass(frozen=True)
class PipelineConfig:
    jpeg_quality: int
    base64_line_wrap: bool
    overlay_policy: str
    capture_policy: str
    capture_workers: int
    initial_permission: str


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_choice(value: str | None, choices: set[str], default: str) -> str:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized not in choices:
        return default
    return normalized


def get_camera_config() -> CameraConfig:
    backend = _parse_choice(os.getenv("FACEREC_CAMERA_BACKEND"), {"opencv", "stub"}, "opencv")
    device_index = _parse_int(os.getenv("FACEREC_CAMERA_DEVICE_INDEX"), 0)
    lens_facing = _parse_choice(os.getenv("FACEREC_CAMERA_LENS"), {"front", "back"}, "front")
    width = _parse_int(os.getenv("FACEREC_CAMERA_WIDTH"), 640)
    height = _parse_int(os.getenv("FACEREC_CAMERA_HEIGHT"), 480)
    scale_type = _parse_choice(
        os.getenv("FACEREC_PREVIEW_SCALE_TYPE"), {"fill_center", "fit_center"}, "fill_center"
    )
    return CameraConfig(
        backend=backend,
        device_index=device_index,
        lens_facing=lens_facing,
        width=width if width > 0 else 640,
        height=height if height > 0 else 480,
        preview_scale_type=scale_type,
    )


def get_detector_config() -> DetectorConfig:
    performance_mode = _parse_choice(
        os.getenv("FACEREC_DETECTOR_PERFORMANCE_MODE"), {"accurate", "fast"}, "accurate"
    )
    min_face_size = _parse_int(os.getenv("FACEREC_DETECTOR_MIN_FACE_SIZE"), 30)
    return DetectorConfig(
        performance_mode=performance_mode,
        min_face_size=max(min_face_size, 1),
    )


def get_pipeline_config() -> PipelineConfig:
    jpeg_quality = _parse_int(os.getenv("FACEREC_JPEG_QUALITY"), 85)
    if not 0 <= jpeg_quality <= 100:
        jpeg_quality = 85
    capture_workers = _parse_int(os.getenv("FACEREC_CAPTURE_WORKERS"), 4)
    return PipelineConfig(
        jpeg_quality=jpeg_quality,
        base64_line_wrap=_parse_bool(os.getenv("FACEREC_BASE64_LINE_WRAP"), True),
        overlay_policy=_parse_choice(
            os.getenv("FACEREC_OVERLAY_POLICY"), {"hold_last", "clear_on_empty"}, "hold_last"
        ),
        capture_policy=_parse_choice(
            os.getenv("FACEREC_CAPTURE_POLICY"), {"unthrottled", "single_flight"}, "unthrottled"
        ),
        capture_workers=capture_workers if capture_workers > 0 else 4,
        initial_permission=_parse_choice(
            os.getenv("FACEREC_CAMERA_PERMISSION"),
            {"granted", "denied", "not_requested"},
            "not_requested",
        ),
    )
