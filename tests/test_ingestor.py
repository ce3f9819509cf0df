"""Tests for record ingestion, dedup and language detection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from liveread.schemas.records import RawRecord
from liveread.schemas.show_settings import ShowSettings
from liveread.services.ingestor import IngestOutcome, Ingestor
from liveread.services.show_settings import ShowSettingsService
from liveread.services.speech import DispatchState, TextSegmenter, UtteranceQueue


def _make_ingestor(clock=None, language="Tagalog (Taglish)"):
    queue = UtteranceQueue()
    state = DispatchState(clock=clock) if clock else DispatchState()
    settings = ShowSettingsService(ShowSettings(language=language))
    on_enqueued = MagicMock()
    ingestor = Ingestor(queue, state, TextSegmenter(), settings, on_enqueued=on_enqueued)
    return ingestor, queue, state, settings, on_enqueued


@pytest.mark.asyncio
async def test_same_record_id_is_enqueued_once():
    ingestor, queue, _, _, on_enqueued = _make_ingestor()
    record = RawRecord(id=7, source_text="Magandang gabi. Maria: Hello po.")

    first = await ingestor.on_record(record)
    second = await ingestor.on_record(record)

    assert first == IngestOutcome.ENQUEUED
    assert second == IngestOutcome.DUPLICATE
    assert [c.text for c in queue] == ["Magandang gabi.", "Maria: Hello po."]
    on_enqueued.assert_called_once()
    assert ingestor.last_processed_id == 7


@pytest.mark.asyncio
async def test_changed_id_with_same_content_is_a_new_update():
    ingestor, queue, _, _, _ = _make_ingestor()

    await ingestor.on_record(RawRecord(id=1, source_text="Same words."))
    await ingestor.on_record(RawRecord(id=2, source_text="Same words."))

    assert len(queue) == 2


@pytest.mark.asyncio
async def test_translated_text_is_preferred():
    ingestor, queue, _, _, _ = _make_ingestor()
    record = RawRecord(id=1, source_text="Original.", translated_text="Isinalin.")

    await ingestor.on_record(record)

    assert [c.text for c in queue] == ["Isinalin."]


@pytest.mark.asyncio
async def test_blank_translation_falls_back_to_source():
    ingestor, queue, _, _, _ = _make_ingestor()
    record = RawRecord(id=1, source_text="Original.", translated_text="   ")

    await ingestor.on_record(record)

    assert [c.text for c in queue] == ["Original."]


@pytest.mark.asyncio
async def test_record_without_text_is_ignored_and_not_remembered():
    ingestor, queue, _, _, on_enqueued = _make_ingestor()

    outcome = await ingestor.on_record(RawRecord(id=3, source_text="", translated_text=None))

    assert outcome == IngestOutcome.EMPTY
    assert len(queue) == 0
    on_enqueued.assert_not_called()
    assert ingestor.last_processed_id is None


@pytest.mark.asyncio
async def test_enqueue_updates_activity_clock(clock):
    ingestor, _, state, _, _ = _make_ingestor(clock=clock)
    clock.advance(12)

    await ingestor.on_record(RawRecord(id=1, source_text="Wake up."))

    assert state.last_activity_at == clock.now


@pytest.mark.asyncio
async def test_supported_target_language_switches_output():
    ingestor, _, _, settings, _ = _make_ingestor()

    await ingestor.on_record(
        RawRecord(id=1, source_text="Hola.", target_language="Spanish", source_lang_label="English (US)")
    )

    current = settings.get_settings()
    assert current.language == "Spanish"
    assert current.detected_language == "Spanish"
    assert current.language_auto_detected is True


@pytest.mark.asyncio
async def test_unsupported_target_falls_back_to_source_label():
    ingestor, _, _, settings, _ = _make_ingestor()

    await ingestor.on_record(
        RawRecord(id=1, source_text="Hi.", target_language="Klingon", source_lang_label="English (UK)")
    )

    current = settings.get_settings()
    assert current.language == "Tagalog (Taglish)"
    assert current.detected_language == "English (UK)"
    assert current.language_auto_detected is False


@pytest.mark.asyncio
async def test_handler_failure_keeps_record_retryable():
    ingestor, queue, _, _, on_enqueued = _make_ingestor()
    on_enqueued.side_effect = [RuntimeError("boom"), None]
    record = RawRecord(id=9, source_text="Try again.")

    with pytest.raises(RuntimeError):
        await ingestor.on_record(record)
    assert ingestor.last_processed_id is None

    queue.clear()
    outcome = await ingestor.on_record(record)

    assert outcome == IngestOutcome.ENQUEUED
    assert ingestor.last_processed_id == 9
