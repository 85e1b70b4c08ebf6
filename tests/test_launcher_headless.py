from __future__ import annotations

import json

import pytest

from apps.preview.launcher import build_parser, main, resolve_configs, run_headless
from facerec.camera.backends.stub import StubFrameSource
from facerec.camera.errors import CameraUnavailableError
from facerec.pipeline import screen as screen_module


@pytest.fixture(autouse=True)
def stub_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FACEREC_CAMERA_BACKEND", "stub")
    monkeypatch.setenv("FACEREC_CAMERA_WIDTH", "64")
    monkeypatch.setenv("FACEREC_CAMERA_HEIGHT", "48")
    monkeypatch.delenv("FACEREC_CAMERA_PERMISSION", raising=False)


def test_status_flag_prints_camera_status(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--status"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["backend"] == "stub"
    assert payload["available"] is True
    assert payload["lens_facing"] == "front"


def test_cli_overrides_env() -> None:
    args = build_parser().parse_args(["--backend", "opencv", "--capture-policy", "single_flight"])
    camera, _, pipeline = resolve_configs(args)
    assert camera.backend == "opencv"
    assert pipeline.capture_policy == "single_flight"


def test_headless_run_with_grant() -> None:
    args = build_parser().parse_args(["--headless", "--grant"])
    camera, detector, pipeline = resolve_configs(args)
    status = run_headless(camera, detector, pipeline, max_frames=5, grant=True)
    assert status.permission == "granted"
    assert status.backend == "stub"
    assert status.overlays == 0
    assert status.captures_requested == 0


def test_headless_run_without_grant_exits_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--headless", "--max-frames", "3"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["permission"] == "denied"
    assert payload["pipeline_active"] is False


def test_headless_run_with_missing_camera_exits_nonzero(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    class MissingCamera(StubFrameSource):
        def open(self) -> None:
            raise CameraUnavailableError("Camera device 0 not available.")

    monkeypatch.setattr(screen_module, "create_frame_source", lambda config: MissingCamera())
    assert main(["--headless", "--grant", "--max-frames", "3"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["permission"] == "granted"
    assert payload["pipeline_active"] is False
    assert payload["camera_error"] == "camera_unavailable: Camera device 0 not available."
