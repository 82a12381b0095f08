"""Retention enforcement for the capture output directory."""

from __future__ import annotations

import datetime as dt
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import AppConfig
from .logging_utils import get_logger
from .observability.metrics import library_files_deleted_total


@dataclass(frozen=True)
class CleanupPolicy:
    retention_days: int = 30
    max_items: int = 500
    max_bytes: int = 2 * 1024 * 1024 * 1024


@dataclass(frozen=True)
class CleanupReport:
    deleted: int
    freed_bytes: int
    remaining: int


def run_cleanup(
    directory: Path, policy: CleanupPolicy, now: dt.datetime | None = None
) -> CleanupReport:
    """Drop expired captures, then the oldest ones until the limits hold."""

    log = get_logger("library")
    if not directory.is_dir():
        return CleanupReport(deleted=0, freed_bytes=0, remaining=0)

    now = now or dt.datetime.now(dt.timezone.utc)
    entries: list[tuple[float, int, Path]] = []
    for item in directory.iterdir():
        if not item.is_file():
            continue
        try:
            stat = item.stat()
        except OSError:
            continue
        entries.append((stat.st_mtime, stat.st_size, item))
    entries.sort(key=lambda entry: entry[0])

    deleted = 0
    freed = 0

    def _remove(entry: tuple[float, int, Path]) -> bool:
        nonlocal deleted, freed
        try:
            entry[2].unlink(missing_ok=True)
        except OSError as exc:
            log.warning("Cannot delete {}: {}", entry[2], exc)
            return False
        deleted += 1
        freed += entry[1]
        return True

    kept: list[tuple[float, int, Path]] = []
    if policy.retention_days > 0:
        cutoff = (now - dt.timedelta(days=policy.retention_days)).timestamp()
        for entry in entries:
            if entry[0] < cutoff and _remove(entry):
                continue
            kept.append(entry)
    else:
        kept = entries

    total_bytes = sum(entry[1] for entry in kept)
    # Files that could not be deleted still count against the limits.
    stuck = 0
    while kept and (
        (policy.max_items > 0 and len(kept) + stuck > policy.max_items)
        or (policy.max_bytes > 0 and total_bytes > policy.max_bytes)
    ):
        oldest = kept.pop(0)
        if _remove(oldest):
            total_bytes -= oldest[1]
        else:
            stuck += 1

    if deleted:
        library_files_deleted_total.inc(deleted)
        log.info("Removed {} captures ({} bytes) from {}", deleted, freed, directory)
    return CleanupReport(deleted=deleted, freed_bytes=freed, remaining=len(kept) + stuck)


class CleanupService:
    """Run ``run_cleanup`` at startup and then periodically on a daemon thread."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._log = get_logger("library")
        self._run_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_cleanup_at: Optional[dt.datetime] = None
        self.last_report: Optional[CleanupReport] = None

    @property
    def policy(self) -> CleanupPolicy:
        library = self._config.library
        return CleanupPolicy(
            retention_days=library.retention_days,
            max_items=library.max_items,
            max_bytes=library.max_bytes,
        )

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="capturebridge-library-cleanup"
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
        self._thread = None

    def run_now(self) -> Optional[CleanupReport]:
        return self.run(reason="manual")

    def run(self, reason: str) -> Optional[CleanupReport]:
        if not self._config.library.enabled:
            return None
        if not self._run_lock.acquire(blocking=False):
            self._log.debug("Cleanup already running; skipping {} pass", reason)
            return None
        try:
            report = run_cleanup(self._config.library_dir, self.policy)
            self.last_cleanup_at = dt.datetime.now(dt.timezone.utc)
            self.last_report = report
            self._log.info("Capture library cleanup done ({})", reason)
            return report
        finally:
            self._run_lock.release()

    def _loop(self) -> None:
        reason = "startup"
        while not self._stop.is_set():
            try:
                self.run(reason=reason)
            except Exception:
                self._log.exception("Capture library cleanup failed")
            reason = "timer"
            if self._stop.wait(self._config.library.interval_s):
                break
