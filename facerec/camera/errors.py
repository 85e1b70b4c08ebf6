from __future__ import annotations


class CameraError(Exception):
    def __init__(self, message: str, code: str = "camera_error"):
        super().__init__(message)
        self.code = code


class CameraPermissionDeniedError(CameraError):
    def __init__(self, message: str = "Camera permission not granted."):
        super().__init__(message, code="permission_denied")


class CameraUnavailableError(CameraError):
    def __init__(self, message: str = "Camera backend unavailable."):
        super().__init__(message, code="camera_unavailable")


class CaptureFailedError(CameraError):
    def __init__(self, message: str = "Still capture failed."):
        super().__init__(message, code="capture_failed")


class EncodingFailedError(CameraError):
    def __init__(self, message: str = "Captured image could not be encoded."):
        super().__init__(message, code="encoding_failed")
