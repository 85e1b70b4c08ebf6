from __future__ import annotations

from typing import Callable, Optional

from facerec.camera.analyzer import COORDINATE_SYSTEM_VIEW_REFERENCED, AnalysisResult, FaceAnalyzer
from facerec.camera.backends.base import FaceDetector, Frame, FrameSource
from facerec.camera.controller import CameraController
from facerec.camera.errors import CameraError
from facerec.camera.models import ScreenStatus
from facerec.camera.service import create_face_detector, create_frame_source
from facerec.config import CameraConfig, DetectorConfig, PipelineConfig, get_pipeline_config
from facerec.logging.audit import audit_event
from facerec.logging.logger import get_logger
from facerec.pipeline.capture import CaptureEncoder, CaptureHandler, CaptureTrigger, LatestCapture
from facerec.pipeline.overlay import OverlayState
from facerec.pipeline.permission import PermissionGate, PermissionState, PermissionStore
from facerec.runtime.executors import Executor


class FaceCaptureScreen:
    """Wires permission, camera, detection, overlays and capture together.

    Nothing camera-related is constructed until the permission gate reports
    a grant. All state changes happen on ``main_executor``.
    """

    def __init__(
        self,
        permission_store: PermissionStore,
        source_factory: Callable[[], FrameSource],
        detector_factory: Callable[[], FaceDetector],
        main_executor: Executor,
        capture_executor: Executor,
        pipeline_config: Optional[PipelineConfig] = None,
        scale_type: str = "fill_center",
        view_size: Callable[[], Optional[tuple[int, int]]] = lambda: None,
        start_thread: bool = True,
    ):
        config = pipeline_config or get_pipeline_config()
        self._config = config
        self._source_factory = source_factory
        self._detector_factory = detector_factory
        self._main_executor = main_executor
        self._capture_executor = capture_executor
        self._scale_type = scale_type
        self._view_size = view_size
        self._start_thread = start_thread
        self._preview_listener: Optional[Callable[[Frame], None]] = None

        self.gate = PermissionGate(permission_store)
        self.overlays = OverlayState(policy=config.overlay_policy)
        self.captured = LatestCapture()
        self.capture_handler = CaptureHandler(
            CaptureEncoder(quality=config.jpeg_quality, line_wrap=config.base64_line_wrap),
            self.captured,
        )
        self.controller: Optional[CameraController] = None
        self.analyzer: Optional[FaceAnalyzer] = None
        self.trigger: Optional[CaptureTrigger] = None
        self.camera_error: Optional[str] = None
        self.gate.on_granted(self._build_pipeline)

    @classmethod
    def from_config(
        cls,
        permission_store: PermissionStore,
        camera: CameraConfig,
        detector: DetectorConfig,
        pipeline: PipelineConfig,
        main_executor: Executor,
        capture_executor: Executor,
        **kwargs,
    ) -> "FaceCaptureScreen":
        return cls(
            permission_store=permission_store,
            source_factory=lambda: create_frame_source(camera),
            detector_factory=lambda: create_face_detector(camera, detector),
            main_executor=main_executor,
            capture_executor=capture_executor,
            pipeline_config=pipeline,
            scale_type=camera.preview_scale_type,
            **kwargs,
        )

    @property
    def pipeline_active(self) -> bool:
        return self.controller is not None and self.controller.is_bound

    def set_preview_listener(self, listener: Optional[Callable[[Frame], None]]) -> None:
        self._preview_listener = listener
        if self.controller is not None:
            self.controller.set_preview_listener(listener)

    def start(self) -> PermissionState:
        return self.gate.load()

    def request_permission(self) -> None:
        # A grant whose camera failed to open retries the build instead of prompting.
        if self.gate.is_granted and self.controller is None:
            self._build_pipeline()
            return
        self.gate.request()

    def stop(self) -> None:
        if self.controller is not None:
            self.controller.unbind()
        if self.analyzer is not None:
            self.analyzer.close()
        self.controller = None
        self.analyzer = None

    def status(self) -> ScreenStatus:
        trigger = self.trigger
        handler = self.capture_handler
        failure = handler.last_failure
        last_failure = self.camera_error
        if last_failure is None and failure is not None:
            last_failure = f"{failure.kind}: {failure.message}"
        return ScreenStatus(
            permission=self.gate.state.value,
            backend=self.controller.source.name if self.controller is not None else None,
            pipeline_active=self.pipeline_active,
            overlays=len(self.overlays),
            captures_requested=trigger.requested if trigger is not None else 0,
            captures_skipped=trigger.skipped if trigger is not None else 0,
            captures_completed=handler.completed,
            captures_failed=handler.failed,
            has_capture=self.captured.value is not None,
            camera_error=self.camera_error,
            last_failure=last_failure,
        )

    def _build_pipeline(self) -> None:
        if self.controller is not None:
            return
        controller: Optional[CameraController] = None
        analyzer: Optional[FaceAnalyzer] = None
        try:
            source = self._source_factory()
            controller = CameraController(source, self._main_executor, self._capture_executor)
            analyzer = FaceAnalyzer(
                self._detector_factory(),
                self._on_analysis,
                coordinate_system=COORDINATE_SYSTEM_VIEW_REFERENCED,
                view_size=self._view_size,
                scale_type=self._scale_type,
            )
            controller.set_analyzer(analyzer)
            controller.set_preview_listener(self._preview_listener)
            self.trigger = CaptureTrigger(
                controller,
                self._main_executor,
                self.capture_handler,
                policy=self._config.capture_policy,
            )
            self.controller = controller
            self.analyzer = analyzer
            controller.bind(start_thread=self._start_thread)
        except CameraError as exc:
            self._teardown_failed(controller, analyzer, exc)
            return
        self.camera_error = None
        get_logger().info("Camera pipeline built on %s backend", source.name)

    def _teardown_failed(
        self,
        controller: Optional[CameraController],
        analyzer: Optional[FaceAnalyzer],
        error: CameraError,
    ) -> None:
        if controller is not None:
            controller.unbind()
            controller.source.close()
        if analyzer is not None:
            analyzer.close()
        self.controller = None
        self.analyzer = None
        self.trigger = None
        self.camera_error = f"{error.code}: {error}"
        get_logger().warning("Camera pipeline could not start: %s", error)
        audit_event("camera.unavailable", code=error.code, message=str(error))

    def _on_analysis(self, result: AnalysisResult) -> None:
        self.overlays.replace(result.boxes)
        if self.trigger is not None:
            self.trigger.on_analysis(result.boxes)
