from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication

from facerec.config import CameraConfig, DetectorConfig, PipelineConfig
from facerec.logging.logger import get_logger
from facerec.pipeline.permission import PermissionState
from facerec.pipeline.screen import FaceCaptureScreen
from facerec.runtime.executors import PoolExecutor
from facerec.ui.preview_window import DialogPermissionStore, PreviewView, PreviewWindow
from facerec.ui.qt_executor import QtMainThreadExecutor


def create_window(
    camera: CameraConfig,
    detector: DetectorConfig,
    pipeline: PipelineConfig,
    capture_pool: PoolExecutor,
) -> PreviewWindow:
    view = PreviewView(scale_type=camera.preview_scale_type)
    window: PreviewWindow | None = None
    store = DialogPermissionStore(
        initial=PermissionState(pipeline.initial_permission),
        parent=lambda: window,
    )
    screen = FaceCaptureScreen.from_config(
        store,
        camera,
        detector,
        pipeline,
        main_executor=QtMainThreadExecutor(),
        capture_executor=capture_pool,
        view_size=view.current_size,
    )
    window = PreviewWindow(screen, view)
    screen.start()
    return window


def run(camera: CameraConfig, detector: DetectorConfig, pipeline: PipelineConfig) -> int:
    logger = get_logger()
    app = QApplication.instance() or QApplication(sys.argv)
    capture_pool = PoolExecutor(max_workers=pipeline.capture_workers, thread_name_prefix="facerec-capture")
    window = create_window(camera, detector, pipeline, capture_pool)
    window.show()
    logger.info("Preview window opened (backend=%s)", camera.backend)
    try:
        return app.exec()
    finally:
        capture_pool.shutdown(wait=False)
