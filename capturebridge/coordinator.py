"""Executor-backed capture coordinator.

Runs capture backends off the caller's thread and announces every finished
automation request on the event channel, exactly once per request id.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Mapping

from .backends import CaptureBackend, CaptureResult
from .events import EventChannel
from .logging_utils import get_logger
from .models import COMPLETION_EVENT, CaptureKind, CaptureOutcome, ReturnKind
from .observability.metrics import completion_events_total


class ExecutorCoordinator:
    def __init__(
        self,
        channel: EventChannel,
        backends: Mapping[CaptureKind, CaptureBackend],
        *,
        max_workers: int = 2,
    ) -> None:
        self._channel = channel
        self._backends = dict(backends)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="capturebridge-coordinator"
        )
        self._lock = threading.Lock()
        self._closed = False
        self._log = get_logger("coordinator")

    @property
    def kinds(self) -> list[CaptureKind]:
        return list(self._backends)

    def perform_area_capture(self, source: str) -> None:
        self._submit_trigger(CaptureKind.AREA, source)

    def perform_full_screen_capture(self, source: str) -> None:
        self._submit_trigger(CaptureKind.FULL_SCREEN, source)

    def perform_area_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None:
        self._submit(CaptureKind.AREA, request_id, return_kind)

    def perform_full_screen_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None:
        self._submit(CaptureKind.FULL_SCREEN, request_id, return_kind)

    def perform_advanced_area_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None:
        self._submit(CaptureKind.ADVANCED_AREA, request_id, return_kind)

    def perform_ocr_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None:
        self._submit(CaptureKind.OCR_AREA, request_id, return_kind)

    def perform_window_capture_for_automation(
        self, request_id: str, return_kind: ReturnKind
    ) -> None:
        self._submit(CaptureKind.WINDOW_UNDER_MOUSE, request_id, return_kind)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _submit(self, kind: CaptureKind, request_id: str, return_kind: ReturnKind) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("coordinator is shut down")
            self._executor.submit(self._run_automation, kind, request_id, return_kind)

    def _submit_trigger(self, kind: CaptureKind, source: str) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("coordinator is shut down")
            self._executor.submit(self._run_trigger, kind, source)

    def _capture(self, kind: CaptureKind, return_kind: ReturnKind) -> CaptureResult:
        backend = self._backends.get(kind)
        if backend is None:
            raise LookupError(f"No capture backend configured for {kind.value}")
        return backend(return_kind)

    def _run_automation(self, kind: CaptureKind, request_id: str, return_kind: ReturnKind) -> None:
        try:
            result = self._capture(kind, return_kind)
            outcome = CaptureOutcome(file_path=result.file_path, text=result.text)
        except Exception as exc:
            self._log.warning("{} capture {} failed: {}", kind.value, request_id, exc)
            outcome = CaptureOutcome(error=str(exc) or exc.__class__.__name__)
        status = "error" if outcome.failed else "ok"
        completion_events_total.labels(kind.value, status).inc()
        self._channel.publish(COMPLETION_EVENT, outcome.to_payload(request_id))

    def _run_trigger(self, kind: CaptureKind, source: str) -> None:
        try:
            result = self._capture(kind, ReturnKind.FILE_PATH)
        except Exception:
            self._log.exception("{} capture from {} failed", kind.value, source)
            return
        self._log.info("{} capture from {} saved {}", kind.value, source, result.file_path)
