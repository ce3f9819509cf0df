"""Ingestion of upstream records into the utterance queue."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from liveread.schemas.records import RawRecord
from liveread.schemas.show_settings import is_supported_language
from liveread.services.show_settings import ShowSettingsService
from liveread.services.speech import DispatchState, TextSegmenter, UtteranceQueue

logger = logging.getLogger(__name__)


class IngestOutcome(str, Enum):
    ENQUEUED = "enqueued"
    NO_CHUNKS = "no_chunks"
    DUPLICATE = "duplicate"
    EMPTY = "empty"


class Ingestor:
    """Single entry point for records from both the poll tick and push notifications.

    Records are deduplicated by id. The id is remembered only after a record
    was handled, so a delivery that fails half-way is retried on the next
    identical delivery.
    """

    def __init__(
        self,
        queue: UtteranceQueue,
        state: DispatchState,
        segmenter: TextSegmenter,
        show_settings: ShowSettingsService,
        on_enqueued: Optional[Callable[[], object]] = None,
    ):
        self._queue = queue
        self._state = state
        self._segmenter = segmenter
        self._show_settings = show_settings
        self._on_enqueued = on_enqueued
        self.last_processed_id: int | str | None = None

    def set_on_enqueued(self, callback: Callable[[], object]) -> None:
        self._on_enqueued = callback

    async def on_record(self, record: RawRecord) -> IngestOutcome:
        if record.id == self.last_processed_id:
            logger.debug(f"Skipping already processed record {record.id}")
            return IngestOutcome.DUPLICATE

        text = record.text_to_speak()
        if text is None:
            logger.debug(f"Record {record.id} has no text to read")
            return IngestOutcome.EMPTY

        self._apply_language(record)

        chunks = self._segmenter.segment(text)
        if chunks:
            self._queue.extend(chunks)
            self._state.touch()
            logger.info(
                f"Record {record.id}: queued {len(chunks)} chunk(s), "
                f"{len(self._queue)} pending"
            )
            if self._on_enqueued is not None:
                self._on_enqueued()

        self.last_processed_id = record.id
        return IngestOutcome.ENQUEUED if chunks else IngestOutcome.NO_CHUNKS

    def _apply_language(self, record: RawRecord) -> None:
        target = record.target_language
        label = record.source_lang_label

        if target and is_supported_language(target):
            if self._show_settings.switch_language(target, auto_detected=True):
                logger.info(f"Auto-detected target language: {target}")
        elif label and is_supported_language(label):
            self._show_settings.set_detected_language(label)


__all__ = ["IngestOutcome", "Ingestor"]
