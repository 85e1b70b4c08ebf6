from __future__ import annotations

import threading
import time
from typing import Optional

import cv2
import numpy as np

from facerec.camera.backends.base import BoundingBox, FaceDetectorOptions, Frame, StillImage
from facerec.camera.errors import CameraUnavailableError, CaptureFailedError
from facerec.config import CameraConfig
from facerec.logging.logger import get_logger


class OpenCVFrameSource:
    name = "opencv"

    def __init__(self, config: CameraConfig):
        self._config = config
        self._capture: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._index = 0
        # Front lens frames are mirrored so the preview reads like a mirror.
        self.mirrored = config.lens_facing == "front"

    def is_available(self) -> bool:
        if self._capture is not None:
            return self._capture.isOpened()
        capture = cv2.VideoCapture(self._config.device_index)
        if not capture or not capture.isOpened():
            return False
        capture.release()
        return True

    def open(self) -> None:
        with self._lock:
            if self._capture is not None:
                return
            capture = cv2.VideoCapture(self._config.device_index)
            if not capture or not capture.isOpened():
                raise CameraUnavailableError(
                    f"Camera device {self._config.device_index} not available."
                )
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._config.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._config.height)
            capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)
            self._capture = capture
        get_logger().info(
            "Camera %s opened at %sx%s",
            self._config.device_index,
            int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def close(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None

    def read_frame(self) -> Optional[Frame]:
        pixels = self._read()
        if pixels is None:
            return None
        self._index += 1
        return Frame(pixels=pixels, index=self._index, timestamp=time.monotonic())

    def capture_still(self) -> StillImage:
        pixels = self._read()
        if pixels is None:
            raise CaptureFailedError("Camera returned no frame for still capture.")
        return StillImage.from_pixels(pixels.copy())

    def _read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._capture is None:
                return None
            success, pixels = self._capture.read()
        if not success or pixels is None:
            return None
        if self.mirrored:
            pixels = cv2.flip(pixels, 1)
        return pixels


class HaarFaceDetector:
    name = "haar"

    def __init__(self, options: FaceDetectorOptions | None = None):
        self._options = options or FaceDetectorOptions()
        cascade_path = cv2.data.haarcascades + "haarcascade_frontalface_default.xml"
        self._cascade = cv2.CascadeClassifier(cascade_path)
        if self._cascade.empty():
            raise CameraUnavailableError(f"Could not load cascade from {cascade_path}")

    @property
    def options(self) -> FaceDetectorOptions:
        return self._options

    def detect(self, pixels: np.ndarray) -> list[BoundingBox]:
        if pixels.ndim == 3:
            gray = cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY)
        else:
            gray = pixels
        scale = 1.0
        if self._options.performance_mode == "fast":
            scale = 0.5
            gray = cv2.resize(gray, None, fx=scale, fy=scale)
            scale_factor, min_neighbors = 1.3, 4
        else:
            scale_factor, min_neighbors = 1.1, 5
        min_side = max(int(self._options.min_face_size * scale), 1)
        faces = self._cascade.detectMultiScale(
            gray,
            scaleFactor=scale_factor,
            minNeighbors=min_neighbors,
            minSize=(min_side, min_side),
        )
        return [
            BoundingBox.from_xywh(float(x) / scale, float(y) / scale, float(w) / scale, float(h) / scale)
            for x, y, w, h in faces
        ]

    def close(self) -> None:
        self._cascade = None
