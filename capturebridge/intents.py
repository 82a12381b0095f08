"""Automation intents exposed to shortcut runners and voice assistants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .bridge import ScreenshotBridge
from .errors import CaptureBridgeError
from .logging_utils import get_logger
from .models import CaptureKind, ReturnKind

_LOG = get_logger("intents")


@dataclass(frozen=True, slots=True)
class IntentSpec:
    name: str
    title: str
    description: str
    kind: CaptureKind
    default_return: ReturnKind
    short_title: str
    phrases: tuple[str, ...]
    icon: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "kind": self.kind.value,
            "default_return": self.default_return.value,
            "short_title": self.short_title,
            "phrases": list(self.phrases),
            "icon": self.icon,
        }


INTENTS: tuple[IntentSpec, ...] = (
    IntentSpec(
        name="capture_area",
        title="Capture Area",
        description="Capture a selected region and return its file path (or text).",
        kind=CaptureKind.AREA,
        default_return=ReturnKind.FILE_PATH,
        short_title="Area",
        phrases=("Capture an area with {app}", "Take a region screenshot with {app}"),
        icon="selection.pin.in.out",
    ),
    IntentSpec(
        name="capture_advanced_area",
        title="Advanced Capture",
        description="Open the editor for an advanced capture and return its file path (or text).",
        kind=CaptureKind.ADVANCED_AREA,
        default_return=ReturnKind.FILE_PATH,
        short_title="Advanced",
        phrases=("Advanced capture with {app}",),
        icon="slider.horizontal.3",
    ),
    IntentSpec(
        name="capture_ocr",
        title="OCR Capture",
        description="Capture a region and return the recognized text or the image path.",
        kind=CaptureKind.OCR_AREA,
        default_return=ReturnKind.TEXT,
        short_title="OCR",
        phrases=("Read text on screen with {app}", "OCR capture with {app}"),
        icon="text.viewfinder",
    ),
    IntentSpec(
        name="capture_window",
        title="Capture Window",
        description="Capture the window under the mouse and return its file path (or text).",
        kind=CaptureKind.WINDOW_UNDER_MOUSE,
        default_return=ReturnKind.FILE_PATH,
        short_title="Window",
        phrases=("Capture a window with {app}",),
        icon="macwindow",
    ),
    IntentSpec(
        name="capture_full_screen",
        title="Capture Full Screen",
        description="Capture the whole screen and return its file path (or text).",
        kind=CaptureKind.FULL_SCREEN,
        default_return=ReturnKind.FILE_PATH,
        short_title="Full Screen",
        phrases=("Capture the screen with {app}", "Take a full screenshot with {app}"),
        icon="rectangle.inset.filled",
    ),
)

_BY_NAME = {intent.name: intent for intent in INTENTS}


@dataclass(frozen=True, slots=True)
class IntentResult:
    intent: str
    ok: bool
    value: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None


def get_intent(name: str) -> IntentSpec:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown intent: {name}") from None


def parse_return_kind(raw: str | ReturnKind | None, default: ReturnKind) -> ReturnKind:
    """Map a caller-supplied return type; anything unrecognized means ``default``."""

    if isinstance(raw, ReturnKind):
        return raw
    if raw is None:
        return default
    try:
        return ReturnKind(raw)
    except ValueError:
        _LOG.debug("Unknown return type {!r}; using {}", raw, default.value)
        return default


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, CaptureBridgeError):
        return str(exc.description)
    return str(exc) or exc.__class__.__name__


async def run_intent(
    bridge: ScreenshotBridge,
    name: str,
    return_type: str | ReturnKind | None = None,
) -> IntentResult:
    intent = get_intent(name)
    want = parse_return_kind(return_type, intent.default_return)
    try:
        value = await bridge.capture(intent.kind, want)
    except CaptureBridgeError as exc:
        _LOG.info("Intent {} failed: {}", name, exc)
        return IntentResult(
            intent=name,
            ok=False,
            error=describe_error(exc),
            error_type=exc.__class__.__name__,
        )
    return IntentResult(intent=name, ok=True, value=value)
