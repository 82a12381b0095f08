"""Capture bridge error types."""

from __future__ import annotations


class CaptureBridgeError(RuntimeError):
    """Base error for capture requests."""

    description = "Capture failed"


class CorrelationError(CaptureBridgeError):
    """The request never produced an outcome."""


class CoordinatorUnavailableError(CorrelationError):
    """No capture coordinator is attached or it refused the command."""

    description = "Capture app unavailable"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.description)


class CaptureTimeoutError(CorrelationError):
    """No completion event arrived before the deadline."""

    description = "Capture timed out"

    def __init__(self, timeout_s: float, request_id: str | None = None) -> None:
        super().__init__(f"{self.description} after {timeout_s:g}s")
        self.timeout_s = timeout_s
        self.request_id = request_id


class ProjectionError(CaptureBridgeError):
    """The outcome could not be turned into a return value."""


class CaptureFailedError(ProjectionError):
    """The coordinator reported an explicit failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def description(self) -> str:  # type: ignore[override]
        return self.message


class NoResultError(ProjectionError):
    description = "No result to return"

    def __init__(self) -> None:
        super().__init__(self.description)


class NoFileError(ProjectionError):
    description = "No file path to return"

    def __init__(self) -> None:
        super().__init__(self.description)


class BackendError(RuntimeError):
    """A capture backend command failed."""
