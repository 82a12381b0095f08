"""External-command capture backends.

The pixels, selection UI and OCR engine live outside this package. A backend
runs a configured command (``screencapture -i {path}``, ``grim -g ... {path}``,
an OCR wrapper script, ...) and reports either the written file or the text
printed on stdout.
"""

from __future__ import annotations

import datetime as dt
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .config import AppConfig, CommandConfig
from .errors import BackendError
from .logging_utils import get_logger
from .models import CaptureKind, ReturnKind


@dataclass(frozen=True, slots=True)
class CaptureResult:
    file_path: Optional[str] = None
    text: Optional[str] = None


CaptureBackend = Callable[[ReturnKind], CaptureResult]


def capture_filename(prefix: str, suffix: str, now: dt.datetime | None = None) -> str:
    stamp = (now or dt.datetime.now()).strftime("%Y-%m-%d-%H-%M-%S-%f")
    return f"{prefix}-{stamp}.{suffix}"


class CommandBackend:
    def __init__(
        self,
        argv: Sequence[str],
        *,
        output: str = "file",
        output_dir: Path,
        image_format: str = "png",
        timeout_s: float = 120.0,
        languages: Sequence[str] = ("en-US",),
        name: str = "capture",
    ) -> None:
        if not argv:
            raise ValueError("argv must not be empty")
        if output not in {"file", "stdout"}:
            raise ValueError(f"Unsupported backend output: {output}")
        self._argv = list(argv)
        self._output = output
        self._output_dir = Path(output_dir)
        self._image_format = image_format
        self._timeout_s = timeout_s
        self._languages = list(languages)
        self._name = name
        self._log = get_logger(f"backend.{name}")

    def __call__(self, return_kind: ReturnKind) -> CaptureResult:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        path = self._output_dir / capture_filename("Screenshot", self._image_format)
        argv = [
            arg.replace("{path}", str(path)).replace("{languages}", ",".join(self._languages))
            for arg in self._argv
        ]
        self._log.debug("Running {}", argv)
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout_s,
                check=False,
            )
        except FileNotFoundError as exc:
            raise BackendError(f"Capture command not found: {argv[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BackendError(f"Capture command timed out after {self._timeout_s:g}s") from exc

        if proc.returncode != 0:
            detail = (proc.stderr or "").strip() or f"exit code {proc.returncode}"
            raise BackendError(f"Capture command failed: {detail}")

        file_path = str(path) if path.exists() and path.stat().st_size > 0 else None
        if self._output == "stdout":
            text = (proc.stdout or "").strip() or None
            return CaptureResult(file_path=file_path, text=text)
        if file_path is None:
            # The user dismissed the selection or the tool wrote nothing.
            raise BackendError("Capture cancelled; no file was written")
        return CaptureResult(file_path=file_path)


def build_backends(
    config: AppConfig,
    commands: dict[CaptureKind, CommandConfig] | None = None,
) -> dict[CaptureKind, CaptureBackend]:
    commands = config.coordinator.commands if commands is None else commands
    backends: dict[CaptureKind, CaptureBackend] = {}
    for kind, command in commands.items():
        backends[CaptureKind(kind)] = CommandBackend(
            command.argv,
            output=command.output,
            output_dir=config.coordinator.output_dir,
            image_format=config.coordinator.image_format,
            timeout_s=command.timeout_s,
            languages=config.ocr.languages,
            name=CaptureKind(kind).value,
        )
    return backends
