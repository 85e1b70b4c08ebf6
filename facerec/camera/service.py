from __future__ import annotations

from facerec.camera.backends.base import FaceDetector, FaceDetectorOptions, FrameSource
from facerec.camera.backends.stub import ScriptedFaceDetector, StubFrameSource
from facerec.camera.models import CameraStatus
from facerec.config import CameraConfig, DetectorConfig
from facerec.logging.audit import audit_event


def create_frame_source(config: CameraConfig) -> FrameSource:
    if config.backend == "opencv":
        from facerec.camera.backends.opencv import OpenCVFrameSource

        return OpenCVFrameSource(config)
    return StubFrameSource(
        width=config.width,
        height=config.height,
        mirrored=config.lens_facing == "front",
    )


def create_face_detector(camera: CameraConfig, detector: DetectorConfig) -> FaceDetector:
    if camera.backend == "opencv":
        from facerec.camera.backends.opencv import HaarFaceDetector

        options = FaceDetectorOptions(
            performance_mode=detector.performance_mode,
            landmark_mode="none",
            classification_mode="none",
            min_face_size=detector.min_face_size,
        )
        return HaarFaceDetector(options)
    return ScriptedFaceDetector()


def camera_status(config: CameraConfig, source: FrameSource | None = None) -> CameraStatus:
    source = source or create_frame_source(config)
    available = source.is_available()
    message = _status_message(available=available, source=source)
    audit_event("camera.status", backend=source.name, available=available)
    return CameraStatus(
        backend=source.name,
        available=available,
        lens_facing=config.lens_facing,
        message=message,
    )


def _status_message(*, available: bool, source: FrameSource) -> str:
    if not available:
        return f"Camera backend '{source.name}' unavailable."
    if source.name == "stub":
        return "Stub backend ready (no real camera)."
    return "Camera backend ready."
