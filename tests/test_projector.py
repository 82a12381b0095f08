from __future__ import annotations

import pytest

from capturebridge.errors import CaptureFailedError, NoFileError, NoResultError
from capturebridge.models import CaptureOutcome, ReturnKind
from capturebridge.projector import project

TEXT = ReturnKind.TEXT
FILE = ReturnKind.FILE_PATH


@pytest.mark.parametrize(
    ("outcome", "want", "expected"),
    [
        (CaptureOutcome(file_path="/p.png"), FILE, "/p.png"),
        (CaptureOutcome(file_path="/p.png"), TEXT, "/p.png"),
        (CaptureOutcome(text="hello"), TEXT, "hello"),
        (CaptureOutcome(file_path="/p.png", text="hello"), TEXT, "hello"),
        (CaptureOutcome(file_path="/p.png", text="hello"), FILE, "/p.png"),
        (CaptureOutcome(file_path="/p.png", text=""), TEXT, "/p.png"),
    ],
)
def test_projection_values(outcome: CaptureOutcome, want: ReturnKind, expected: str) -> None:
    assert project(outcome, want) == expected


@pytest.mark.parametrize(
    ("outcome", "want", "error"),
    [
        (CaptureOutcome(error="denied", file_path="/p.png", text="t"), FILE, CaptureFailedError),
        (CaptureOutcome(error="denied", file_path="/p.png", text="t"), TEXT, CaptureFailedError),
        (CaptureOutcome(text="hello"), FILE, NoFileError),
        (CaptureOutcome(), FILE, NoFileError),
        (CaptureOutcome(), TEXT, NoResultError),
        (CaptureOutcome(file_path="", text=""), TEXT, NoResultError),
    ],
)
def test_projection_errors(outcome: CaptureOutcome, want: ReturnKind, error: type) -> None:
    with pytest.raises(error):
        project(outcome, want)


def test_failed_capture_carries_coordinator_message() -> None:
    with pytest.raises(CaptureFailedError) as excinfo:
        project(CaptureOutcome(error="Screen recording permission denied"), TEXT)
    assert excinfo.value.description == "Screen recording permission denied"


def test_outcome_from_payload_prefers_ocr_text() -> None:
    outcome = CaptureOutcome.from_payload(
        {"requestID": "r", "filePath": "/p.png", "ocrText": "ocr", "text": "plain"}
    )
    assert outcome == CaptureOutcome(file_path="/p.png", text="ocr")

    fallback = CaptureOutcome.from_payload({"text": "plain", "error": None})
    assert fallback == CaptureOutcome(text="plain")


def test_outcome_from_payload_ignores_non_string_values() -> None:
    outcome = CaptureOutcome.from_payload({"filePath": 12, "ocrText": ["x"], "error": True})
    assert outcome == CaptureOutcome()
    assert not outcome.failed


def test_outcome_payload_keys() -> None:
    payload = CaptureOutcome(file_path="/p.png").to_payload("req-1")
    assert payload == {"requestID": "req-1", "filePath": "/p.png", "ocrText": None, "error": None}


def test_reference_table() -> None:
    with pytest.raises(CaptureFailedError, match="boom"):
        project(CaptureOutcome.from_payload({"error": "boom"}), FILE)
    assert project(CaptureOutcome.from_payload({"filePath": "/tmp/a.png"}), FILE) == "/tmp/a.png"
    with pytest.raises(NoFileError):
        project(CaptureOutcome.from_payload({"text": "hello"}), FILE)
    assert project(CaptureOutcome.from_payload({"filePath": "/tmp/a.png"}), TEXT) == "/tmp/a.png"
    with pytest.raises(NoResultError):
        project(CaptureOutcome.from_payload({}), TEXT)
