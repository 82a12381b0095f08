from __future__ import annotations

import datetime as dt
import os
import threading
from pathlib import Path

from capturebridge.config import AppConfig
from capturebridge.library import CleanupPolicy, CleanupService, run_cleanup

NOW = dt.datetime(2025, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def _capture(directory: Path, name: str, *, age_days: float, size: int = 10) -> Path:
    path = directory / name
    path.write_bytes(b"x" * size)
    stamp = (NOW - dt.timedelta(days=age_days)).timestamp()
    os.utime(path, (stamp, stamp))
    return path


def test_expired_captures_are_removed(tmp_path: Path) -> None:
    old = _capture(tmp_path, "old.png", age_days=45)
    fresh = _capture(tmp_path, "fresh.png", age_days=2)

    report = run_cleanup(tmp_path, CleanupPolicy(retention_days=30), now=NOW)

    assert report.deleted == 1
    assert report.freed_bytes == 10
    assert report.remaining == 1
    assert not old.exists()
    assert fresh.exists()


def test_item_limit_drops_oldest_first(tmp_path: Path) -> None:
    paths = [_capture(tmp_path, f"shot-{i}.png", age_days=5 - i) for i in range(5)]

    report = run_cleanup(tmp_path, CleanupPolicy(retention_days=0, max_items=2), now=NOW)

    assert report.deleted == 3
    assert [path.exists() for path in paths] == [False, False, False, True, True]


def test_byte_limit(tmp_path: Path) -> None:
    big = _capture(tmp_path, "big.png", age_days=3, size=600)
    small = _capture(tmp_path, "small.png", age_days=1, size=300)

    report = run_cleanup(
        tmp_path, CleanupPolicy(retention_days=0, max_items=0, max_bytes=500), now=NOW
    )

    assert report.deleted == 1
    assert report.freed_bytes == 600
    assert not big.exists()
    assert small.exists()


def test_zero_limits_keep_everything(tmp_path: Path) -> None:
    _capture(tmp_path, "ancient.png", age_days=900)
    report = run_cleanup(
        tmp_path, CleanupPolicy(retention_days=0, max_items=0, max_bytes=0), now=NOW
    )
    assert report.deleted == 0
    assert report.remaining == 1


def test_missing_directory_is_a_noop(tmp_path: Path) -> None:
    report = run_cleanup(tmp_path / "missing", CleanupPolicy(), now=NOW)
    assert (report.deleted, report.freed_bytes, report.remaining) == (0, 0, 0)


def test_subdirectories_are_ignored(tmp_path: Path) -> None:
    (tmp_path / "nested").mkdir()
    report = run_cleanup(tmp_path, CleanupPolicy(max_items=0), now=NOW)
    assert report.remaining == 0
    assert (tmp_path / "nested").is_dir()


def _config(tmp_path: Path, **library) -> AppConfig:
    return AppConfig.model_validate(
        {
            "coordinator": {"output_dir": str(tmp_path / "out")},
            "library": {"directory": str(tmp_path), **library},
        }
    )


def test_service_disabled_returns_none(tmp_path: Path) -> None:
    service = CleanupService(_config(tmp_path, enabled=False))
    assert service.run_now() is None
    assert service.last_report is None


def test_service_run_records_report(tmp_path: Path) -> None:
    for i in range(3):
        (tmp_path / f"{i}.png").write_bytes(b"x")
    service = CleanupService(_config(tmp_path, max_items=1))

    report = service.run_now()

    assert report is not None and report.deleted == 2
    assert service.last_report == report
    assert service.last_cleanup_at is not None


def test_service_skips_overlapping_runs(tmp_path: Path) -> None:
    service = CleanupService(_config(tmp_path))
    service._run_lock.acquire()
    try:
        assert service.run(reason="timer") is None
    finally:
        service._run_lock.release()
    assert service.run(reason="timer") is not None


def test_service_runs_at_startup(tmp_path: Path, monkeypatch) -> None:
    service = CleanupService(_config(tmp_path))
    ran = threading.Event()
    reasons: list[str] = []

    def _run(reason: str):
        reasons.append(reason)
        ran.set()
        return None

    monkeypatch.setattr(service, "run", _run)
    service.start()
    try:
        assert ran.wait(5)
    finally:
        service.stop()
    assert reasons[0] == "startup"


def test_library_dir_defaults_to_output_dir(tmp_path: Path) -> None:
    config = AppConfig.model_validate({"coordinator": {"output_dir": str(tmp_path)}})
    assert config.library_dir == tmp_path


def test_undeletable_capture_still_counts_against_limits(tmp_path: Path, monkeypatch) -> None:
    locked = _capture(tmp_path, "locked.png", age_days=3)
    middle = _capture(tmp_path, "middle.png", age_days=2)
    newest = _capture(tmp_path, "newest.png", age_days=1)
    original_unlink = Path.unlink

    def _unlink(self, *args, **kwargs):
        if self.name == "locked.png":
            raise PermissionError("in use")
        return original_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", _unlink)

    report = run_cleanup(tmp_path, CleanupPolicy(retention_days=0, max_items=2), now=NOW)

    assert report.deleted == 1
    assert report.remaining == 2
    assert locked.exists()
    assert not middle.exists()
    assert newest.exists()
