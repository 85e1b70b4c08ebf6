import cv2
import numpy as np
import pytest

from facerec.camera.backends.base import FaceDetectorOptions
from facerec.camera.backends.opencv import HaarFaceDetector


def test_blank_frame_has_no_faces():
    detector = HaarFaceDetector(FaceDetectorOptions(performance_mode="accurate"))
    assert detector.detect(np.zeros((240, 320, 3), dtype=np.uint8)) == []


def test_fast_mode_accepts_grayscale():
    detector = HaarFaceDetector(FaceDetectorOptions(performance_mode="fast"))
    assert detector.detect(np.full((120, 160), 200, dtype=np.uint8)) == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"performance_mode": "turbo"},
        {"landmark_mode": "all"},
        {"classification_mode": "all"},
    ],
)
def test_unsupported_options_rejected(kwargs):
    with pytest.raises(ValueError):
        FaceDetectorOptions(**kwargs)


def test_installed_opencv_ships_cascade_api():
    assert int(cv2.__version__.split(".")[0]) < 5
    assert hasattr(cv2, "CascadeClassifier")
    assert hasattr(cv2.data, "haarcascades")
