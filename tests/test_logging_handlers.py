import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from liveread.logging_handlers import (
    DateStampedFileHandler,
    cleanup_old_logs,
    date_stamped_path,
)


def test_date_stamped_path_uses_utc(tmp_path) -> None:
    moment = datetime(2024, 5, 26, 12, 34, 56, tzinfo=timezone(timedelta(hours=8)))

    path = date_stamped_path(tmp_path, "turns_broadcast", moment, suffix=".jsonl")

    assert path == (tmp_path / "2024-05-26" / "turns_broadcast_2024-05-26_04-34-56_UTC.jsonl").resolve()


def test_date_stamped_file_handler_creates_expected_path(tmp_path) -> None:
    current = datetime(2024, 5, 26, 12, 34, 56, tzinfo=timezone.utc)
    handler = DateStampedFileHandler(
        directory=tmp_path / "app",
        prefix="app",
        current_time=current,
        encoding="utf-8",
    )
    try:
        expected_file = (tmp_path / "app" / "2024-05-26").resolve() / "app_2024-05-26_12-34-56_UTC.log"
        file_path = Path(handler.baseFilename)
        assert file_path == expected_file
        assert file_path.exists()

        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname=__file__,
            lineno=0,
            msg="on air",
            args=(),
            exc_info=None,
        )
        handler.emit(record)

        assert "on air" in file_path.read_text(encoding="utf-8")
    finally:
        handler.close()


def test_handler_derives_prefix_from_filename(tmp_path) -> None:
    current = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    handler = DateStampedFileHandler(filename=tmp_path / "custom.log", current_time=current)
    try:
        expected_file = (tmp_path / "2023-01-02").resolve() / "custom_2023-01-02_03-04-05_UTC.log"
        assert Path(handler.baseFilename) == expected_file
    finally:
        handler.close()


def test_handler_defaults_prefix(tmp_path) -> None:
    current = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    handler = DateStampedFileHandler(filename=tmp_path / "logs", current_time=current)
    try:
        assert Path(handler.baseFilename).name == "liveread_2023-01-02_03-04-05_UTC.log"
    finally:
        handler.close()


def test_cleanup_old_logs(tmp_path) -> None:
    """Old files are deleted and the date folders they leave empty are pruned."""
    log_dir = tmp_path / "logs" / "app"
    old_dir = log_dir / "2024-01-01"
    new_dir = log_dir / "2024-01-03"
    old_dir.mkdir(parents=True)
    new_dir.mkdir(parents=True)

    now = datetime.now(timezone.utc)
    old_file = old_dir / "old.log"
    old_file.write_text("old content")
    old_time = (now - timedelta(days=3)).timestamp()
    os.utime(old_file, (old_time, old_time))

    recent_file = new_dir / "recent.log"
    recent_file.write_text("recent content")
    recent_time = (now - timedelta(days=1)).timestamp()
    os.utime(recent_file, (recent_time, recent_time))

    other_file = new_dir / "notes.txt"
    other_file.write_text("not a log")
    os.utime(other_file, (old_time, old_time))

    deleted, errors = cleanup_old_logs([log_dir, tmp_path / "missing"], retention_hours=48)

    assert deleted == 1
    assert errors == 0
    assert not old_file.exists()
    assert not old_dir.exists()
    assert recent_file.exists()
    assert other_file.exists()


def test_cleanup_disabled_with_zero_retention(tmp_path) -> None:
    log_file = tmp_path / "ancient.log"
    log_file.write_text("keep me")
    ancient = (datetime.now(timezone.utc) - timedelta(days=365)).timestamp()
    os.utime(log_file, (ancient, ancient))

    assert cleanup_old_logs([tmp_path], retention_hours=0) == (0, 0)
    assert log_file.exists()
