from __future__ import annotations

import argparse
import dataclasses
import sys
from typing import Optional, Sequence

from facerec.camera.models import ScreenStatus
from facerec.camera.service import camera_status
from facerec.config import (
    CameraConfig,
    DetectorConfig,
    PipelineConfig,
    get_camera_config,
    get_detector_config,
    get_pipeline_config,
)
from facerec.logging.logger import get_logger
from facerec.pipeline.permission import PermissionState, StaticPermissionStore
from facerec.pipeline.screen import FaceCaptureScreen
from facerec.runtime.executors import PoolExecutor, SerialExecutor


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Front camera face detection with auto-capture.")
    parser.add_argument("--backend", choices=["opencv", "stub"], help="Frame source backend.")
    parser.add_argument("--device-index", type=int, help="Camera device index.")
    parser.add_argument(
        "--capture-policy", choices=["unthrottled", "single_flight"], help="Still capture policy."
    )
    parser.add_argument(
        "--overlay-policy", choices=["hold_last", "clear_on_empty"], help="Overlay policy for empty frames."
    )
    parser.add_argument("--status", action="store_true", help="Print camera status and exit.")
    parser.add_argument("--headless", action="store_true", help="Run the pipeline without a window.")
    parser.add_argument("--max-frames", type=int, default=300, help="Headless frame budget.")
    parser.add_argument(
        "--grant", action="store_true", help="Headless: answer the permission prompt with yes."
    )
    return parser


def resolve_configs(
    args: argparse.Namespace,
) -> tuple[CameraConfig, DetectorConfig, PipelineConfig]:
    camera = get_camera_config()
    pipeline = get_pipeline_config()
    camera_overrides = {}
    if args.backend:
        camera_overrides["backend"] = args.backend
    if args.device_index is not None:
        camera_overrides["device_index"] = args.device_index
    pipeline_overrides = {}
    if args.capture_policy:
        pipeline_overrides["capture_policy"] = args.capture_policy
    if args.overlay_policy:
        pipeline_overrides["overlay_policy"] = args.overlay_policy
    return (
        dataclasses.replace(camera, **camera_overrides),
        get_detector_config(),
        dataclasses.replace(pipeline, **pipeline_overrides),
    )


def run_headless(
    camera: CameraConfig,
    detector: DetectorConfig,
    pipeline: PipelineConfig,
    *,
    max_frames: int,
    grant: bool,
) -> ScreenStatus:
    logger = get_logger()
    executor = SerialExecutor()
    capture_pool = PoolExecutor(max_workers=pipeline.capture_workers, thread_name_prefix="facerec-capture")
    store = StaticPermissionStore(initial=PermissionState(pipeline.initial_permission), answer=grant)
    screen = FaceCaptureScreen.from_config(
        store,
        camera,
        detector,
        pipeline,
        main_executor=executor,
        capture_executor=capture_pool,
    )
    try:
        if screen.start() is not PermissionState.GRANTED:
            screen.request_permission()
        controller = screen.controller
        if controller is None:
            logger.warning(
                "Pipeline not started (permission=%s, camera_error=%s)",
                screen.gate.state.value,
                screen.camera_error,
            )
            return screen.status()

        def _done() -> bool:
            return controller.frames_processed >= max_frames or controller.wait_until_idle(timeout=0)

        executor.run_until(_done)
        controller.stop_analysis()
        capture_pool.shutdown(wait=True)
        executor.run_pending()
        return screen.status()
    finally:
        screen.stop()
        capture_pool.shutdown(wait=False)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    camera, detector, pipeline = resolve_configs(args)
    logger = get_logger()

    if args.status:
        print(camera_status(camera).model_dump_json(indent=2))
        return 0

    if args.headless:
        status = run_headless(camera, detector, pipeline, max_frames=args.max_frames, grant=args.grant)
        logger.info("Headless run finished: %s", status.model_dump())
        print(status.model_dump_json(indent=2))
        granted = status.permission == PermissionState.GRANTED.value
        return 0 if granted and status.camera_error is None else 1

    from apps.preview.main import run

    return run(camera, detector, pipeline)


if __name__ == "__main__":
    sys.exit(main())
