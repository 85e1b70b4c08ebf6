from __future__ import annotations

from typing import Callable, Optional

import cv2
from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QImage, QPainter
from PySide6.QtWidgets import (
    QLabel,
    QMessageBox,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from facerec.camera.backends.base import Frame
from facerec.camera.transform import ViewTransform
from facerec.pipeline.overlay import FaceOverlay
from facerec.pipeline.permission import PermissionState
from facerec.pipeline.screen import FaceCaptureScreen

OVERLAY_ALPHA = 0.65


class DialogPermissionStore:
    """Camera permission prompt shown as a modal yes/no dialog."""

    def __init__(
        self,
        initial: PermissionState = PermissionState.NOT_REQUESTED,
        parent: Callable[[], Optional[QWidget]] = lambda: None,
    ):
        self._initial = initial
        self._parent = parent

    def check(self) -> PermissionState:
        return self._initial

    def request(self, on_result: Callable[[bool], None]) -> None:
        answer = QMessageBox.question(
            self._parent(),
            "Camera permission",
            "Allow this app to use the camera?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        on_result(answer == QMessageBox.Yes)


class PreviewView(QWidget):
    """Live frame plus filled white rectangles over detected faces."""

    def __init__(self, scale_type: str = "fill_center") -> None:
        super().__init__()
        self._scale_type = scale_type
        self._image: Optional[QImage] = None
        self._overlays: tuple[FaceOverlay, ...] = ()
        self._size: Optional[tuple[int, int]] = None
        self.setMinimumSize(320, 240)

    def current_size(self) -> Optional[tuple[int, int]]:
        # Read from the analysis thread, so only a cached tuple is exposed.
        return self._size

    def set_frame(self, frame: Frame) -> None:
        rgb = cv2.cvtColor(frame.pixels, cv2.COLOR_BGR2RGB)
        height, width = rgb.shape[:2]
        self._image = QImage(rgb.data, width, height, 3 * width, QImage.Format_RGB888).copy()
        self.update()

    def set_overlays(self, overlays: tuple[FaceOverlay, ...]) -> None:
        self._overlays = overlays
        self.update()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        self._size = (self.width(), self.height())
        super().resizeEvent(event)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.black)
        if self._image is not None:
            transform = ViewTransform.between(
                (self._image.width(), self._image.height()),
                (self.width(), self.height()),
                self._scale_type,
            )
            target = QRectF(
                transform.offset_x,
                transform.offset_y,
                self._image.width() * transform.scale,
                self._image.height() * transform.scale,
            )
            painter.drawImage(target, self._image)
        painter.setOpacity(OVERLAY_ALPHA)
        for overlay in self._overlays:
            painter.fillRect(
                QRectF(overlay.origin.x, overlay.origin.y, overlay.size.width, overlay.size.height),
                QColor(Qt.white),
            )
        painter.end()


class PreviewWindow(QWidget):
    def __init__(self, screen: FaceCaptureScreen, view: PreviewView) -> None:
        super().__init__()
        self.setWindowTitle("Face Capture")
        self.resize(720, 540)
        self._screen = screen
        self._view = view
        self._build_ui()

        screen.gate.on_change(self._on_permission)
        screen.gate.on_granted(self._sync_page)
        screen.set_preview_listener(view.set_frame)
        screen.overlays.add_listener(view.set_overlays)
        screen.capture_handler.add_listener(lambda _result: self._refresh_status())

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._launch_button = QPushButton("Launch Camera")
        self._launch_button.clicked.connect(self._launch)
        launch_page = QWidget()
        launch_layout = QVBoxLayout(launch_page)
        launch_layout.addStretch(1)
        launch_layout.addWidget(self._launch_button, alignment=Qt.AlignCenter)
        launch_layout.addStretch(1)

        self._stack = QStackedWidget()
        self._stack.addWidget(launch_page)
        self._stack.addWidget(self._view)
        layout.addWidget(self._stack, 1)

        self._status = QLabel()
        self._status.setObjectName("status")
        layout.addWidget(self._status)

    def _launch(self) -> None:
        self._screen.request_permission()
        self._sync_page()

    def _on_permission(self, state: PermissionState) -> None:
        if state is not PermissionState.GRANTED:
            self._stack.setCurrentIndex(0)
        self._refresh_status()

    def _sync_page(self) -> None:
        active = self._screen.pipeline_active
        self._stack.setCurrentIndex(1 if active else 0)
        if not active and self._screen.gate.is_granted:
            self._launch_button.setText("Retry Camera")
        self._refresh_status()

    @property
    def page_index(self) -> int:
        return self._stack.currentIndex()

    @property
    def status_text(self) -> str:
        return self._status.text()

    def _refresh_status(self) -> None:
        status = self._screen.status()
        text = (
            f"Permission: {status.permission} | Faces: {status.overlays} | "
            f"Captures: {status.captures_completed}/{status.captures_requested}"
        )
        if status.captures_failed:
            text += f" | Failed: {status.captures_failed}"
        if status.camera_error:
            text += f" | Camera: {status.camera_error}"
        self._status.setText(text)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._screen.stop()
        super().closeEvent(event)
