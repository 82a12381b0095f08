from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from capturebridge.dispatch import CoordinatorHandle  # noqa: E402
from capturebridge.events import EventChannel  # noqa: E402
from capturebridge.models import COMPLETION_EVENT, CaptureKind, ReturnKind  # noqa: E402


class FakeCoordinator:
    """Records commands and replies through ``responder`` (or never)."""

    def __init__(
        self,
        channel: EventChannel,
        responder: Optional[Callable[[CaptureKind, str, ReturnKind], Optional[dict]]] = None,
        *,
        delay_s: float | None = None,
    ) -> None:
        self.channel = channel
        self.responder = responder
        self.delay_s = delay_s
        self.calls: list[tuple[CaptureKind, str, ReturnKind]] = []
        self.triggers: list[tuple[str, str]] = []
        self.subscribers_at_dispatch: list[int] = []
        self._timers: list[threading.Timer] = []

    def reply(self, request_id: str, **fields: Optional[str]) -> int:
        payload = {"requestID": request_id, **fields}
        return self.channel.publish(COMPLETION_EVENT, payload)

    def _handle(self, kind: CaptureKind, request_id: str, return_kind: ReturnKind) -> None:
        self.calls.append((kind, request_id, return_kind))
        self.subscribers_at_dispatch.append(self.channel.subscriber_count(COMPLETION_EVENT))
        if self.responder is None:
            return
        fields = self.responder(kind, request_id, return_kind)
        if fields is None:
            return
        if self.delay_s is None:
            self.reply(request_id, **fields)
            return
        timer = threading.Timer(self.delay_s, self.reply, args=(request_id,), kwargs=fields)
        timer.daemon = True
        self._timers.append(timer)
        timer.start()

    def cancel_timers(self) -> None:
        for timer in self._timers:
            timer.cancel()

    def perform_area_capture(self, source: str) -> None:
        self.triggers.append(("area", source))

    def perform_full_screen_capture(self, source: str) -> None:
        self.triggers.append(("fullScreen", source))

    def perform_area_capture_for_automation(self, request_id, return_kind) -> None:
        self._handle(CaptureKind.AREA, request_id, return_kind)

    def perform_full_screen_capture_for_automation(self, request_id, return_kind) -> None:
        self._handle(CaptureKind.FULL_SCREEN, request_id, return_kind)

    def perform_advanced_area_capture_for_automation(self, request_id, return_kind) -> None:
        self._handle(CaptureKind.ADVANCED_AREA, request_id, return_kind)

    def perform_ocr_capture_for_automation(self, request_id, return_kind) -> None:
        self._handle(CaptureKind.OCR_AREA, request_id, return_kind)

    def perform_window_capture_for_automation(self, request_id, return_kind) -> None:
        self._handle(CaptureKind.WINDOW_UNDER_MOUSE, request_id, return_kind)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture
def coordinator_factory(channel):
    created: list[FakeCoordinator] = []

    def _factory(responder=None, *, delay_s=None):
        coordinator = FakeCoordinator(channel, responder, delay_s=delay_s)
        created.append(coordinator)
        return coordinator, CoordinatorHandle(coordinator)

    yield _factory
    for coordinator in created:
        coordinator.cancel_timers()


@pytest.fixture
def async_client_factory():
    def _factory(app):
        transport = httpx.ASGITransport(app=app)
        return httpx.AsyncClient(transport=transport, base_url="http://testserver")

    return _factory
