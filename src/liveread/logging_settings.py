"""Reader for ``logging_settings.conf``, the operator-facing log switchboard.

The file is a flat list of ``key = value`` lines. ``terminal`` and ``turns``
take one of ``debug``, ``info``, ``warning`` or ``off``; ``retention_hours``
takes a whole number of hours (``0`` keeps files forever).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

LEVELS: dict[str, int | None] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "off": None,
}


@dataclass(frozen=True)
class LoggingSettings:
    """Levels for the console and the turn log, plus file retention.

    A level of ``None`` switches that output off.
    """

    terminal_level: int | None = logging.INFO
    turns_level: int | None = logging.INFO
    retention_hours: int = 48


def _level(value: str) -> int | None:
    # Unknown words fall back to INFO rather than silencing output
    return LEVELS.get(value.lower(), logging.INFO)


def _hours(value: str, fallback: int) -> int:
    try:
        return max(0, int(value))
    except ValueError:
        return fallback


def parse_logging_settings(path: Path) -> LoggingSettings:
    """Read the settings file, keeping defaults for anything missing or malformed."""
    settings = LoggingSettings()
    if not path.exists():
        return settings

    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.partition("=")
        key = key.strip().lower()
        if not sep or not key or key.startswith("#"):
            continue
        value = value.strip()

        if key == "terminal":
            settings = replace(settings, terminal_level=_level(value))
        elif key == "turns":
            settings = replace(settings, turns_level=_level(value))
        elif key == "retention_hours":
            settings = replace(
                settings,
                retention_hours=_hours(value, LoggingSettings.retention_hours),
            )

    return settings


__all__ = ["LEVELS", "LoggingSettings", "parse_logging_settings"]
