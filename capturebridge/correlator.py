"""Request/response correlation between automation callers and the coordinator.

Each call mints a request id, registers a one-shot waiter keyed on that id,
dispatches the capture command and then races the completion event against a
timeout. Three actors can try to settle a waiter: the event handler (on the
coordinator's thread), the timeout timer and the caller's own cancellation
(both on the event loop thread). ``ResolutionSlot`` makes the first of them
win; the others become no-ops.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any, Optional

from .dispatch import CoordinatorHandle, dispatch_capture
from .errors import CaptureTimeoutError, CoordinatorUnavailableError
from .events import Event, EventChannel, Subscription
from .logging_utils import get_logger
from .models import (
    COMPLETION_EVENT,
    KEY_REQUEST_ID,
    CaptureKind,
    CaptureOutcome,
    ReturnKind,
    new_request_id,
)
from .observability.metrics import (
    correlation_latency_ms,
    correlations_total,
    pending_correlations,
)

DEFAULT_TIMEOUT_S = 90.0

_UNSET = object()


class ResolutionSlot:
    """Single-assignment cell: the first ``try_set`` wins."""

    __slots__ = ("_lock", "_value")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: Any = _UNSET

    def try_set(self, value: Any) -> bool:
        with self._lock:
            if self._value is not _UNSET:
                return False
            self._value = value
            return True

    @property
    def is_set(self) -> bool:
        with self._lock:
            return self._value is not _UNSET

    def get(self) -> Any:
        with self._lock:
            if self._value is _UNSET:
                raise LookupError("slot is empty")
            return self._value


class PendingWaiter:
    """One in-flight correlation: request id, resolution slot and registration."""

    def __init__(self, request_id: str, loop: asyncio.AbstractEventLoop) -> None:
        self.request_id = request_id
        self._loop = loop
        self._slot = ResolutionSlot()
        self._future: asyncio.Future[CaptureOutcome] = loop.create_future()
        self._subscription: Optional[Subscription] = None
        self._log = get_logger("correlator")

    @property
    def resolved(self) -> bool:
        return self._slot.is_set

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    def attach(self, subscription: Subscription) -> None:
        self._subscription = subscription
        # An event can settle the waiter between registration and attach.
        if self._slot.is_set:
            subscription.cancel()

    def on_event(self, event: Event) -> None:
        if event.payload.get(KEY_REQUEST_ID) != self.request_id:
            return
        self.resolve(CaptureOutcome.from_payload(event.payload))

    def resolve(self, outcome: CaptureOutcome) -> bool:
        return self._settle(outcome, None)

    def reject(self, exc: BaseException) -> bool:
        return self._settle(None, exc)

    def cancel(self) -> bool:
        """Abandon the wait; the caller is no longer interested."""

        won = self._slot.try_set(("cancelled", None))
        # Revoke even when another actor won; it may not have revoked yet.
        self._revoke()
        return won

    async def wait(self) -> CaptureOutcome:
        return await self._future

    def _settle(self, outcome: CaptureOutcome | None, exc: BaseException | None) -> bool:
        if not self._slot.try_set(("error", exc) if exc is not None else ("ok", outcome)):
            return False
        self._revoke()
        try:
            self._loop.call_soon_threadsafe(self._deliver, outcome, exc)
        except RuntimeError:
            self._log.debug("Event loop closed before request {} was delivered", self.request_id)
        return True

    def _deliver(self, outcome: CaptureOutcome | None, exc: BaseException | None) -> None:
        if self._future.done():
            return
        if exc is not None:
            self._future.set_exception(exc)
        else:
            self._future.set_result(outcome)  # type: ignore[arg-type]

    def _revoke(self) -> None:
        subscription = self._subscription
        if subscription is not None:
            subscription.cancel()


class RequestCorrelator:
    def __init__(
        self,
        channel: EventChannel,
        coordinator: CoordinatorHandle,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        self._channel = channel
        self._coordinator = coordinator
        self._timeout_s = timeout_s
        self._pending: dict[str, PendingWaiter] = {}
        self._pending_lock = threading.Lock()
        self._log = get_logger("correlator")

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @property
    def channel(self) -> EventChannel:
        return self._channel

    @property
    def coordinator(self) -> CoordinatorHandle:
        return self._coordinator

    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    async def correlate(
        self,
        kind: CaptureKind,
        *,
        return_kind: ReturnKind = ReturnKind.FILE_PATH,
        timeout_s: float | None = None,
    ) -> CaptureOutcome:
        """Dispatch one capture command and wait for its completion event."""

        kind = CaptureKind(kind)
        return_kind = ReturnKind(return_kind)
        timeout = self._timeout_s if timeout_s is None else timeout_s
        if timeout <= 0:
            raise ValueError("timeout_s must be positive")

        coordinator = self._coordinator.resolve()
        if coordinator is None:
            correlations_total.labels(kind.value, "unavailable").inc()
            raise CoordinatorUnavailableError()

        loop = asyncio.get_running_loop()
        request_id = new_request_id()
        waiter = PendingWaiter(request_id, loop)
        # Registration must precede dispatch so a fast completion is not missed.
        waiter.attach(
            self._channel.subscribe_keyed(
                COMPLETION_EVENT, KEY_REQUEST_ID, request_id, waiter.on_event
            )
        )
        self._track(waiter)
        started = time.monotonic()
        outcome_label = "cancelled"
        try:
            try:
                dispatch_capture(coordinator, kind, request_id, return_kind)
            except Exception as exc:
                outcome_label = "unavailable"
                self._log.warning("Dispatch of {} capture {} failed: {}", kind.value, request_id, exc)
                raise CoordinatorUnavailableError(f"Capture app rejected request: {exc}") from exc

            self._log.debug("Dispatched {} capture {} (timeout {}s)", kind.value, request_id, timeout)
            timer = loop.call_later(
                timeout, waiter.reject, CaptureTimeoutError(timeout, request_id)
            )
            try:
                outcome = await waiter.wait()
            except CaptureTimeoutError:
                outcome_label = "timeout"
                self._log.warning("{} capture {} timed out after {}s", kind.value, request_id, timeout)
                raise
            finally:
                timer.cancel()
            outcome_label = "failed" if outcome.failed else "completed"
            self._log.info(
                "{} capture {} {} in {:.0f}ms",
                kind.value,
                request_id,
                outcome_label,
                (time.monotonic() - started) * 1000,
            )
            return outcome
        finally:
            waiter.cancel()
            self._untrack(waiter)
            correlations_total.labels(kind.value, outcome_label).inc()
            correlation_latency_ms.labels(kind.value).observe((time.monotonic() - started) * 1000)

    def _track(self, waiter: PendingWaiter) -> None:
        with self._pending_lock:
            self._pending[waiter.request_id] = waiter
            pending_correlations.set(len(self._pending))

    def _untrack(self, waiter: PendingWaiter) -> None:
        with self._pending_lock:
            self._pending.pop(waiter.request_id, None)
            pending_correlations.set(len(self._pending))
