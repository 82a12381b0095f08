"""Pick the caller's requested field out of a capture outcome."""

from __future__ import annotations

from .errors import CaptureFailedError, NoFileError, NoResultError
from .models import CaptureOutcome, ReturnKind


def project(outcome: CaptureOutcome, want: ReturnKind) -> str:
    """Return the requested field or raise a ``ProjectionError``.

    An error always wins. Asking for text falls back to the file path, but
    asking for a file path never falls back to text.
    """

    if outcome.error:
        raise CaptureFailedError(outcome.error)

    if ReturnKind(want) is ReturnKind.TEXT:
        if outcome.text:
            return outcome.text
        if outcome.file_path:
            return outcome.file_path
        raise NoResultError()

    if outcome.file_path:
        return outcome.file_path
    raise NoFileError()
