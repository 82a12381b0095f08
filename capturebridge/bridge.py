"""Public capture calls used by automation intents."""

from __future__ import annotations

from .correlator import RequestCorrelator
from .errors import CoordinatorUnavailableError
from .logging_utils import get_logger
from .models import INTENT_SOURCE, CaptureKind, ReturnKind
from .projector import project


class ScreenshotBridge:
    """Correlate a capture request and project the caller's return kind."""

    def __init__(self, correlator: RequestCorrelator) -> None:
        self._correlator = correlator
        self._log = get_logger("bridge")

    @property
    def correlator(self) -> RequestCorrelator:
        return self._correlator

    def trigger_area_capture(self) -> None:
        coordinator = self._correlator.coordinator.resolve()
        if coordinator is None:
            raise CoordinatorUnavailableError()
        coordinator.perform_area_capture(source=INTENT_SOURCE)

    def trigger_full_screen_capture(self) -> None:
        coordinator = self._correlator.coordinator.resolve()
        if coordinator is None:
            raise CoordinatorUnavailableError()
        coordinator.perform_full_screen_capture(source=INTENT_SOURCE)

    async def capture(
        self,
        kind: CaptureKind,
        return_kind: ReturnKind,
        *,
        timeout_s: float | None = None,
    ) -> str:
        outcome = await self._correlator.correlate(
            kind, return_kind=return_kind, timeout_s=timeout_s
        )
        return project(outcome, return_kind)

    async def capture_area(self, return_kind: ReturnKind = ReturnKind.FILE_PATH) -> str:
        return await self.capture(CaptureKind.AREA, return_kind)

    async def capture_full_screen(self, return_kind: ReturnKind = ReturnKind.FILE_PATH) -> str:
        return await self.capture(CaptureKind.FULL_SCREEN, return_kind)

    async def capture_advanced_area(
        self, return_kind: ReturnKind = ReturnKind.FILE_PATH
    ) -> str:
        return await self.capture(CaptureKind.ADVANCED_AREA, return_kind)

    async def capture_ocr(self, return_kind: ReturnKind = ReturnKind.TEXT) -> str:
        return await self.capture(CaptureKind.OCR_AREA, return_kind)

    async def capture_window(self, return_kind: ReturnKind = ReturnKind.FILE_PATH) -> str:
        return await self.capture(CaptureKind.WINDOW_UNDER_MOUSE, return_kind)
