"""Wire the event channel, coordinator, correlator and cleanup service together."""

from __future__ import annotations

from typing import Optional

from .backends import CaptureBackend, build_backends
from .bridge import ScreenshotBridge
from .config import AppConfig
from .coordinator import ExecutorCoordinator
from .correlator import RequestCorrelator
from .dispatch import CoordinatorHandle
from .events import EventChannel, get_event_channel
from .library import CleanupService
from .logging_utils import get_logger
from .models import CaptureKind


class BridgeRuntime:
    def __init__(
        self,
        config: AppConfig,
        *,
        channel: EventChannel | None = None,
        backends: dict[CaptureKind, CaptureBackend] | None = None,
    ) -> None:
        self._config = config
        self._log = get_logger("runtime")
        self.channel = channel or get_event_channel()
        self.handle = CoordinatorHandle()
        self.coordinator: Optional[ExecutorCoordinator] = None
        self._backends = build_backends(config) if backends is None else backends
        self.correlator = RequestCorrelator(
            self.channel, self.handle, timeout_s=config.bridge.timeout_s
        )
        self.bridge = ScreenshotBridge(self.correlator)
        self.cleanup = CleanupService(config)

    @property
    def config(self) -> AppConfig:
        return self._config

    def start(self, *, cleanup: bool = True) -> None:
        if self.coordinator is None:
            if not self._backends:
                self._log.warning(
                    "No capture commands configured; capture requests will report unavailable"
                )
            else:
                self.coordinator = ExecutorCoordinator(
                    self.channel,
                    self._backends,
                    max_workers=self._config.coordinator.max_workers,
                )
                self.handle.attach(self.coordinator)
                self._log.info(
                    "Coordinator ready for {}",
                    ", ".join(kind.value for kind in self.coordinator.kinds),
                )
        if cleanup:
            self.cleanup.start()

    def stop(self) -> None:
        self.cleanup.stop()
        self.handle.detach()
        if self.coordinator is not None:
            self.coordinator.shutdown(wait=False)
            self.coordinator = None
