from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, Union

import cv2
import numpy as np

from facerec.camera.backends.base import BoundingBox, StillImage
from facerec.camera.controller import ImageCaptureCallback
from facerec.camera.errors import CameraError, EncodingFailedError
from facerec.logging.audit import audit_event, text_excerpt
from facerec.logging.logger import get_logger
from facerec.runtime.executors import Executor, ThreadOwner

FAILURE_CAPTURE = "capture"
FAILURE_ENCODING = "encoding"

CAPTURE_UNTHROTTLED = "unthrottled"
CAPTURE_SINGLE_FLIGHT = "single_flight"


@dataclass(frozen=True)
class CaptureSuccess:
    encoded: str
    width: int
    height: int
    jpeg_bytes: int


@dataclass(frozen=True)
class CaptureFailure:
    kind: str
    message: str


CaptureResult = Union[CaptureSuccess, CaptureFailure]


class CaptureEncoder:
    """JPEG-compresses a still image and renders it as base64 text."""

    def __init__(self, quality: int = 85, line_wrap: bool = True):
        self._quality = quality
        self._line_wrap = line_wrap

    def encode(self, image: StillImage) -> CaptureResult:
        try:
            payload = self._compress(image)
        except EncodingFailedError as exc:
            return CaptureFailure(kind=FAILURE_ENCODING, message=str(exc))
        finally:
            image.close()
        if self._line_wrap:
            # MIME-style: 76 characters per line, trailing newline.
            encoded = base64.encodebytes(payload).decode("ascii")
        else:
            encoded = base64.b64encode(payload).decode("ascii")
        return CaptureSuccess(
            encoded=encoded,
            width=image.width,
            height=image.height,
            jpeg_bytes=len(payload),
        )

    def _compress(self, image: StillImage) -> bytes:
        if image.pixels is None or image.closed:
            raise EncodingFailedError("Image buffer already released.")
        try:
            success, buffer = cv2.imencode(
                ".jpg", image.pixels, [int(cv2.IMWRITE_JPEG_QUALITY), self._quality]
            )
        except cv2.error as exc:
            raise EncodingFailedError(f"JPEG compression failed: {exc}") from exc
        if not success or buffer is None or buffer.size == 0:
            raise EncodingFailedError("JPEG compression produced no output.")
        return buffer.tobytes()


def decode_capture(encoded: str) -> np.ndarray:
    data = base64.b64decode(encoded)
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise EncodingFailedError("Encoded capture is not a decodable image.")
    return image


class LatestCapture:
    """Single slot holding the most recent encoded capture."""

    def __init__(self) -> None:
        self._value: Optional[CaptureSuccess] = None
        self._owner = ThreadOwner("LatestCapture")
        self.version = 0

    @property
    def value(self) -> Optional[str]:
        return self._value.encoded if self._value is not None else None

    @property
    def result(self) -> Optional[CaptureSuccess]:
        return self._value

    def set(self, result: CaptureSuccess) -> None:
        self._owner.check()
        self._value = result
        self.version += 1

    def clear(self) -> None:
        self._owner.check()
        self._value = None
        self.version += 1


class CaptureHandler:
    """Completion side of a still capture: encode, store, report."""

    def __init__(self, encoder: CaptureEncoder, slot: LatestCapture):
        self._encoder = encoder
        self._slot = slot
        self._listeners: list[Callable[[CaptureResult], None]] = []
        self.completed = 0
        self.failed = 0
        self.last_failure: Optional[CaptureFailure] = None

    @property
    def slot(self) -> LatestCapture:
        return self._slot

    def add_listener(self, listener: Callable[[CaptureResult], None]) -> None:
        self._listeners.append(listener)

    def on_capture_success(self, image: StillImage) -> CaptureResult:
        result = self._encoder.encode(image)
        if isinstance(result, CaptureSuccess):
            self._slot.set(result)
            self.completed += 1
            audit_event(
                "capture.completed",
                width=result.width,
                height=result.height,
                jpeg_bytes=result.jpeg_bytes,
                preview=text_excerpt(result.encoded),
            )
        else:
            self._record_failure(result)
        self._notify(result)
        return result

    def on_error(self, error: CameraError) -> CaptureResult:
        result = CaptureFailure(kind=FAILURE_CAPTURE, message=str(error))
        self._record_failure(result)
        self._notify(result)
        return result

    def _record_failure(self, failure: CaptureFailure) -> None:
        self.failed += 1
        self.last_failure = failure
        get_logger().warning("Still capture dropped (%s): %s", failure.kind, failure.message)
        audit_event("capture.failed", kind=failure.kind, message=failure.message)

    def _notify(self, result: CaptureResult) -> None:
        for listener in list(self._listeners):
            listener(result)


class PictureTaker(Protocol):
    def take_picture(self, executor: Executor, callback: ImageCaptureCallback) -> None:
        ...


class _TrackedCapture:
    def __init__(self, trigger: "CaptureTrigger", handler: CaptureHandler):
        self._trigger = trigger
        self._handler = handler

    def on_capture_success(self, image: StillImage) -> None:
        try:
            self._handler.on_capture_success(image)
        finally:
            self._trigger._finished()

    def on_error(self, error: CameraError) -> None:
        try:
            self._handler.on_error(error)
        finally:
            self._trigger._finished()


class CaptureTrigger:
    """Requests a still capture for every analyzed frame that has a face.

    With the ``single_flight`` policy a request is skipped while another
    capture is still pending.
    """

    def __init__(
        self,
        camera: PictureTaker,
        executor: Executor,
        handler: CaptureHandler,
        policy: str = CAPTURE_UNTHROTTLED,
    ):
        if policy not in {CAPTURE_UNTHROTTLED, CAPTURE_SINGLE_FLIGHT}:
            raise ValueError(f"Unknown capture policy: {policy}")
        self._camera = camera
        self._executor = executor
        self._handler = handler
        self._policy = policy
        self.in_flight = 0
        self.requested = 0
        self.skipped = 0

    @property
    def policy(self) -> str:
        return self._policy

    def on_analysis(self, boxes: Sequence[BoundingBox]) -> bool:
        if not boxes:
            return False
        if self._policy == CAPTURE_SINGLE_FLIGHT and self.in_flight > 0:
            self.skipped += 1
            return False
        self.requested += 1
        self.in_flight += 1
        self._camera.take_picture(self._executor, _TrackedCapture(self, self._handler))
        return True

    def _finished(self) -> None:
        self.in_flight = max(self.in_flight - 1, 0)
