"""Coordinator interface and the capture-kind command table."""

from __future__ import annotations

import threading
import weakref
from typing import Protocol, runtime_checkable

from .models import CaptureKind, ReturnKind


@runtime_checkable
class CaptureCoordinator(Protocol):
    """The UI-owning side that performs captures.

    Automation commands return immediately; the coordinator later publishes
    exactly one completion event carrying the same request id.
    """

    def perform_area_capture(self, source: str) -> None: ...

    def perform_full_screen_capture(self, source: str) -> None: ...

    def perform_area_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None: ...

    def perform_full_screen_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None: ...

    def perform_advanced_area_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None: ...

    def perform_ocr_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None: ...

    def perform_window_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None: ...


AUTOMATION_COMMANDS: dict[CaptureKind, str] = {
    CaptureKind.AREA: "perform_area_capture_for_automation",
    CaptureKind.FULL_SCREEN: "perform_full_screen_capture_for_automation",
    CaptureKind.ADVANCED_AREA: "perform_advanced_area_capture_for_automation",
    CaptureKind.OCR_AREA: "perform_ocr_capture_for_automation",
    CaptureKind.WINDOW_UNDER_MOUSE: "perform_window_capture_for_automation",
}

_missing = set(CaptureKind) - set(AUTOMATION_COMMANDS)
if _missing:
    raise RuntimeError(f"No automation command for capture kinds: {sorted(_missing)}")


def command_for(kind: CaptureKind) -> str:
    try:
        return AUTOMATION_COMMANDS[CaptureKind(kind)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown capture kind: {kind!r}") from exc


def dispatch_capture(
    coordinator: CaptureCoordinator,
    kind: CaptureKind,
    request_id: str,
    return_kind: ReturnKind,
) -> None:
    getattr(coordinator, command_for(kind))(request_id, return_kind)


class CoordinatorHandle:
    """Non-owning lookup of the current coordinator.

    The handle keeps a weak reference, so a coordinator that has been torn
    down resolves to ``None`` without the correlator managing its lifetime.
    """

    def __init__(self, coordinator: CaptureCoordinator | None = None) -> None:
        self._lock = threading.Lock()
        self._ref: weakref.ReferenceType | None = None
        if coordinator is not None:
            self.attach(coordinator)

    def attach(self, coordinator: CaptureCoordinator) -> None:
        with self._lock:
            self._ref = weakref.ref(coordinator)

    def detach(self) -> None:
        with self._lock:
            self._ref = None

    def resolve(self) -> CaptureCoordinator | None:
        with self._lock:
            ref = self._ref
        if ref is None:
            return None
        return ref()

    @property
    def available(self) -> bool:
        return self.resolve() is not None
