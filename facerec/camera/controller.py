from __future__ import annotations

import threading
import time
from typing import Callable, Optional, Protocol

from facerec.camera.analyzer import FaceAnalyzer
from facerec.camera.backends.base import Frame, FrameSource, StillImage
from facerec.camera.errors import CameraError, CameraUnavailableError, CaptureFailedError
from facerec.logging.audit import audit_event
from facerec.logging.logger import get_logger
from facerec.runtime.executors import Executor


class ImageCaptureCallback(Protocol):
    def on_capture_success(self, image: StillImage) -> None:
        ...

    def on_error(self, error: CameraError) -> None:
        ...


class CameraController:
    """Owns a frame source and feeds its frames to preview and analysis.

    Frames are analyzed one at a time: the analysis thread waits until the
    previous result has been delivered on the main executor before it reads
    the next frame.
    """

    def __init__(
        self,
        source: FrameSource,
        main_executor: Executor,
        capture_executor: Executor,
        max_missed_frames: int = 30,
    ):
        self._source = source
        self._main_executor = main_executor
        self._capture_executor = capture_executor
        self._max_missed_frames = max_missed_frames
        self._analyzer: Optional[FaceAnalyzer] = None
        self._preview_listener: Optional[Callable[[Frame], None]] = None
        self._thread: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._bound = False
        self.frames_processed = 0

    @property
    def source(self) -> FrameSource:
        return self._source

    @property
    def is_bound(self) -> bool:
        return self._bound

    def set_analyzer(self, analyzer: Optional[FaceAnalyzer]) -> None:
        self._analyzer = analyzer

    def set_preview_listener(self, listener: Optional[Callable[[Frame], None]]) -> None:
        self._preview_listener = listener

    def bind(self, start_thread: bool = True) -> None:
        if self._bound:
            return
        self._source.open()
        self._bound = True
        audit_event("camera.bind", backend=self._source.name, mirrored=self._source.mirrored)
        if start_thread:
            self._running.set()
            self._thread = threading.Thread(
                target=self._analysis_loop, name="facerec-analysis", daemon=True
            )
            self._thread.start()

    def stop_analysis(self) -> None:
        self._running.clear()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._thread = None

    def unbind(self) -> None:
        if not self._bound:
            return
        self.stop_analysis()
        self._source.close()
        self._bound = False
        audit_event("camera.unbind", backend=self._source.name, frames=self.frames_processed)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def process_next_frame(self) -> bool:
        if not self._bound:
            return False
        frame = self._source.read_frame()
        if frame is None:
            return False
        self.frames_processed += 1
        if self._preview_listener is not None:
            self._main_executor.execute(self._preview_listener, frame)
        analyzer = self._analyzer
        if analyzer is None:
            return True
        try:
            result = analyzer.analyze(frame)
        except Exception as exc:  # noqa: BLE001 - a bad frame must not stop the stream
            get_logger().warning("Face analysis failed on frame %s: %s", frame.index, exc)
            return True
        self._dispatch_and_wait(analyzer.deliver, result)
        return True

    def take_picture(self, executor: Executor, callback: ImageCaptureCallback) -> None:
        self._capture_executor.execute(self._capture_still, executor, callback)

    def _capture_still(self, executor: Executor, callback: ImageCaptureCallback) -> None:
        if not self._bound:
            executor.execute(callback.on_error, CameraUnavailableError("Camera is not bound."))
            return
        try:
            image = self._source.capture_still()
        except CameraError as exc:
            executor.execute(callback.on_error, exc)
            return
        except Exception as exc:  # noqa: BLE001 - backend errors become typed capture failures
            executor.execute(callback.on_error, CaptureFailedError(str(exc)))
            return
        executor.execute(callback.on_capture_success, image)

    def _dispatch_and_wait(self, fn: Callable, *args) -> None:
        done = threading.Event()

        def _run() -> None:
            try:
                fn(*args)
            finally:
                done.set()

        self._main_executor.execute(_run)
        if threading.current_thread() is not self._thread:
            return
        while self._running.is_set() and not done.wait(timeout=0.1):
            pass

    def _analysis_loop(self) -> None:
        missed = 0
        while self._running.is_set():
            if self.process_next_frame():
                missed = 0
                continue
            missed += 1
            if missed >= self._max_missed_frames:
                get_logger().warning(
                    "Frame source %s stopped delivering frames", self._source.name
                )
                break
            time.sleep(0.01)
        self._running.clear()
