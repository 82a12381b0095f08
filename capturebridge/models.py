"""Core data types shared by the correlator, projector and coordinator."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

COMPLETION_EVENT = "automationCaptureCompleted"

KEY_REQUEST_ID = "requestID"
KEY_FILE_PATH = "filePath"
KEY_OCR_TEXT = "ocrText"
KEY_TEXT = "text"
KEY_ERROR = "error"

INTENT_SOURCE = "appIntent"


class CaptureKind(str, Enum):
    AREA = "area"
    FULL_SCREEN = "fullScreen"
    ADVANCED_AREA = "advancedArea"
    OCR_AREA = "ocrArea"
    WINDOW_UNDER_MOUSE = "windowUnderMouse"


class ReturnKind(str, Enum):
    FILE_PATH = "filePath"
    TEXT = "text"


def new_request_id() -> str:
    """Mint a fresh correlation key."""

    return str(uuid.uuid4())


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True)
class CaptureOutcome:
    """Raw result reported by the coordinator; every field is optional."""

    file_path: Optional[str] = None
    text: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CaptureOutcome":
        text = _as_str(payload.get(KEY_OCR_TEXT))
        if text is None:
            text = _as_str(payload.get(KEY_TEXT))
        return cls(
            file_path=_as_str(payload.get(KEY_FILE_PATH)),
            text=text,
            error=_as_str(payload.get(KEY_ERROR)),
        )

    def to_payload(self, request_id: str) -> dict[str, Optional[str]]:
        return {
            KEY_REQUEST_ID: request_id,
            KEY_FILE_PATH: self.file_path,
            KEY_OCR_TEXT: self.text,
            KEY_ERROR: self.error,
        }

    @property
    def failed(self) -> bool:
        return bool(self.error)
