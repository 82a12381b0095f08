"""Capture request/response bridge between automation callers and a UI-owning capture app."""

from __future__ import annotations

from .bridge import ScreenshotBridge
from .config import AppConfig, load_config
from .correlator import PendingWaiter, RequestCorrelator, ResolutionSlot
from .dispatch import CaptureCoordinator, CoordinatorHandle
from .errors import (
    CaptureBridgeError,
    CaptureFailedError,
    CaptureTimeoutError,
    CoordinatorUnavailableError,
    CorrelationError,
    NoFileError,
    NoResultError,
    ProjectionError,
)
from .events import Event, EventChannel, Subscription, get_event_channel
from .logging_utils import configure_logging, get_logger
from .models import CaptureKind, CaptureOutcome, ReturnKind
from .projector import project

__all__ = [
    "AppConfig",
    "CaptureBridgeError",
    "CaptureCoordinator",
    "CaptureFailedError",
    "CaptureKind",
    "CaptureOutcome",
    "CaptureTimeoutError",
    "CoordinatorHandle",
    "CoordinatorUnavailableError",
    "CorrelationError",
    "Event",
    "EventChannel",
    "NoFileError",
    "NoResultError",
    "PendingWaiter",
    "ProjectionError",
    "RequestCorrelator",
    "ResolutionSlot",
    "ReturnKind",
    "ScreenshotBridge",
    "Subscription",
    "configure_logging",
    "get_event_channel",
    "get_logger",
    "load_config",
    "project",
]
