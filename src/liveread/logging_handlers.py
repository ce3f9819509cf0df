"""File logging under date-stamped folders, plus retention cleanup.

Every log file, whether application log or turn log, lands at
``<base>/<YYYY-MM-DD>/<prefix>_<YYYY-MM-DD_HH-MM-SS>_UTC.log``. That lets
``cleanup_old_logs`` prune whole days.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = Path("logs/app")
DEFAULT_PREFIX = "liveread"


def date_stamped_path(
    base_dir: Path, prefix: str, timestamp: datetime, suffix: str = ".log"
) -> Path:
    """Return ``<base_dir>/<YYYY-MM-DD>/<prefix>_<YYYY-MM-DD_HH-MM-SS>_UTC<suffix>``."""

    moment = timestamp.astimezone(timezone.utc)
    name = f"{prefix}_{moment:%Y-%m-%d_%H-%M-%S}_UTC{suffix}"
    return (base_dir / f"{moment:%Y-%m-%d}" / name).resolve()


def _split_target(
    filename: str | Path | None, directory: str | Path | None
) -> tuple[Path, Optional[str]]:
    """Base directory and filename-derived prefix for a handler target.

    ``LOG_FILE=logs/server.log`` means directory ``logs`` with prefix
    ``server``; a value without a suffix is treated as a directory.
    """
    if filename:
        path = Path(filename)
        if path.suffix:
            return path.parent, path.stem or None
        return path, None
    if directory:
        return Path(directory), None
    return DEFAULT_LOG_DIR, None


class DateStampedFileHandler(logging.FileHandler):
    """``FileHandler`` writing to a fresh date-stamped file per process start."""

    def __init__(
        self,
        filename: str | Path | None = None,
        *,
        directory: str | Path | None = None,
        prefix: str | None = None,
        encoding: str | None = "utf-8",
        mode: str = "a",
        delay: bool = False,
        errors: Optional[str] = None,
        current_time: datetime | None = None,
    ) -> None:
        base_dir, derived_prefix = _split_target(filename, directory)
        log_path = date_stamped_path(
            base_dir.resolve(),
            prefix or derived_prefix or DEFAULT_PREFIX,
            current_time or datetime.now(timezone.utc),
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(log_path, mode=mode, encoding=encoding, delay=delay, errors=errors)


def _is_expired(path: Path, cutoff: datetime) -> bool:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc) < cutoff


def cleanup_old_logs(
    log_directories: list[str | Path],
    retention_hours: int,
    logger: logging.Logger | None = None,
) -> tuple[int, int]:
    """
    Delete ``*.log`` files older than the retention period.

    Date folders left empty afterwards are removed as well. Missing
    directories are skipped.

    Args:
        log_directories: Directories to clean (e.g. ``['logs/app', 'logs/turns']``)
        retention_hours: Age limit in hours; ``0`` disables cleanup

    Returns:
        Tuple of (files_deleted, errors_encountered)
    """
    if retention_hours <= 0:
        return (0, 0)

    cutoff = datetime.now(timezone.utc) - timedelta(hours=retention_hours)
    deleted = 0
    errors = 0

    for directory in map(Path, log_directories):
        root = directory.resolve()
        if not root.is_dir():
            continue

        for log_file in list(root.rglob("*.log")):
            try:
                if not _is_expired(log_file, cutoff):
                    continue
                log_file.unlink()
            except OSError as e:
                errors += 1
                if logger:
                    logger.warning(f"Could not remove old log {log_file}: {e}")
                continue
            deleted += 1
            if logger:
                logger.debug(f"Removed old log {log_file}")

        for day_dir in [p for p in root.iterdir() if p.is_dir()]:
            if any(day_dir.iterdir()):
                continue
            try:
                day_dir.rmdir()
            except OSError:
                errors += 1

    if logger and deleted:
        logger.info(f"Log retention: removed {deleted} file(s), {errors} error(s)")

    return (deleted, errors)


__all__ = ["DateStampedFileHandler", "cleanup_old_logs", "date_stamped_path"]
