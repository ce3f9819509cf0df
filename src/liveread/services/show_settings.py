"""Show settings service holding the live language and style configuration."""

import logging
from typing import Optional

from liveread.schemas.show_settings import (
    ShowSettings,
    ShowSettingsUpdate,
    is_supported_language,
)

logger = logging.getLogger(__name__)


class ShowSettingsService:
    """In-memory holder for the settings the pipeline reads on every dispatch.

    Settings live for the lifetime of the process; nothing is persisted.
    """

    def __init__(self, defaults: Optional[ShowSettings] = None):
        self._defaults = defaults or ShowSettings()
        self._current = self._defaults.model_copy()

    def get_settings(self) -> ShowSettings:
        return self._current

    def update_settings(self, update: ShowSettingsUpdate) -> ShowSettings:
        """Apply a partial update coming from an operator."""
        update_data = update.model_dump(exclude_none=True)
        if "language" in update_data:
            # A manual choice overrides any earlier auto-detection
            update_data["language_auto_detected"] = False
        self._current = self._current.model_copy(update=update_data)
        logger.info(f"Show settings updated: {update_data}")
        return self._current

    def switch_language(self, language: str, *, auto_detected: bool = False) -> bool:
        """Switch the output language. Returns True if the language changed."""
        if not is_supported_language(language):
            raise ValueError(f"Unsupported language: {language}")
        if language == self._current.language:
            return False
        self._current = self._current.model_copy(
            update={
                "language": language,
                "detected_language": language if auto_detected else self._current.detected_language,
                "language_auto_detected": auto_detected,
            }
        )
        logger.info(
            f"Output language switched to {language}"
            + (" (auto-detected)" if auto_detected else "")
        )
        return True

    def set_detected_language(self, language: str | None) -> None:
        """Record the detected source language without switching the output."""
        self._current = self._current.model_copy(update={"detected_language": language})

    def reset_to_defaults(self) -> ShowSettings:
        self._current = self._defaults.model_copy()
        return self._current
