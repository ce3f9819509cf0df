"""Tests for logging settings parsing."""

from pathlib import Path

from liveread.logging_settings import parse_logging_settings


def test_parse_logging_settings_with_retention(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
# Test config
terminal = debug
turns = warning
retention_hours = 72
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 10  # DEBUG
    assert settings.turns_level == 30  # WARNING
    assert settings.retention_hours == 72


def test_parse_logging_settings_defaults(tmp_path: Path) -> None:
    """Missing file falls back to INFO everywhere and 48h retention."""
    settings = parse_logging_settings(tmp_path / "nonexistent.conf")

    assert settings.terminal_level == 20
    assert settings.turns_level == 20
    assert settings.retention_hours == 48


def test_parse_logging_settings_bad_values(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
terminal = loud
not a setting
retention_hours = invalid
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 20  # Unknown level falls back to INFO
    assert settings.retention_hours == 48


def test_parse_logging_settings_negative_retention(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text("retention_hours = -10\n")

    assert parse_logging_settings(config_file).retention_hours == 0


def test_parse_logging_settings_off_level(tmp_path: Path) -> None:
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
terminal = off
TURNS = Off
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level is None
    assert settings.turns_level is None
