"""Session controller wiring the live read pipeline to connection state."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Callable, Optional

from liveread.config import Settings
from liveread.schemas.records import RawRecord
from liveread.services.idle_watchdog import IdleWatchdog
from liveread.services.ingestor import IngestOutcome, Ingestor
from liveread.services.record_source import RecordPoller, RecordSource
from liveread.services.show_settings import ShowSettingsService
from liveread.services.speech import (
    DispatchLoop,
    DispatchState,
    SpeechChannel,
    TextSegmenter,
    UtteranceQueue,
)
from liveread.services.turn_log import TurnLog

logger = logging.getLogger(__name__)


class SessionController:
    """Owns the queue, dispatch state, ingestor, dispatch loop and watchdog of one show.

    Nothing is shared across connections: every connect starts from an empty
    queue with the pre-roll armed, and every disconnect tears down the poll
    timer, the push subscription, the watchdog and any in-flight dispatch wait.
    """

    def __init__(
        self,
        settings: Settings,
        channel: SpeechChannel,
        show_settings: ShowSettingsService,
        *,
        source: Optional[RecordSource] = None,
        turn_log: Optional[TurnLog] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._channel = channel
        self._show_settings = show_settings
        self._source = source
        self.turn_log = turn_log
        rng = rng or random.Random()

        self.queue = UtteranceQueue()
        self.state = DispatchState(clock=clock)
        self.segmenter = TextSegmenter(
            soft_limit=settings.segment_soft_limit,
            hard_limit=settings.segment_hard_limit,
        )
        self.dispatch = DispatchLoop(
            self.queue,
            self.state,
            channel,
            show_settings,
            turn_log=turn_log,
            pre_roll_seconds=settings.pre_roll_seconds,
            retrigger_delay_seconds=settings.retrigger_delay_seconds,
            jitter_ms=settings.pacing_jitter_ms,
            dialogue_base_delay_ms=settings.dialogue_base_delay_ms,
            rng=rng,
        )
        self.ingestor = Ingestor(
            self.queue,
            self.state,
            self.segmenter,
            show_settings,
            on_enqueued=self.dispatch.try_start,
        )
        self.watchdog = IdleWatchdog(
            self.queue,
            self.state,
            channel,
            turn_log=turn_log,
            interval_seconds=settings.watchdog_interval_seconds,
            idle_threshold_seconds=settings.idle_threshold_seconds,
            rng=rng,
        )
        self._poller = (
            RecordPoller(source, self.ingestor.on_record, settings.poll_interval_seconds)
            if source is not None
            else None
        )
        self._connected = False
        self._subscribed = False
        self._transition_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_subscribed(self) -> bool:
        return self._subscribed

    async def on_connect(self) -> None:
        """Start a fresh session: empty queue, pre-roll armed, immediate fetch."""
        async with self._transition_lock:
            await self.dispatch.stop()
            self.queue.clear()
            self.state.reset(pre_roll=True)
            self._connected = True
            self._subscribed = True
            self.watchdog.start()
            if self._poller is not None:
                # The first poll tick fetches immediately
                self._poller.start()
            logger.info("Speech channel connected, session started")

    async def on_disconnect(self) -> None:
        """Tear down timers and subscription. Queued chunks are dropped on next connect."""
        async with self._transition_lock:
            if not self._connected:
                return
            self._connected = False
            self._subscribed = False
            if self._poller is not None:
                await self._poller.stop()
            await self.watchdog.stop()
            await self.dispatch.stop()
            self.state.reset(pre_roll=False)
            logger.info(
                f"Speech channel disconnected ({len(self.queue)} chunk(s) left unsent)"
            )

    async def handle_push(self, record: RawRecord) -> IngestOutcome | None:
        """Deliver a pushed record. Returns None while no subscription is active."""
        if not self._subscribed:
            logger.debug(f"Ignoring pushed record {record.id}: not subscribed")
            return None
        return await self.ingestor.on_record(record)

    async def fetch_now(self) -> bool:
        """Poll the source once outside the regular cadence."""
        if self._poller is None or not self._connected:
            return False
        return await self._poller.poll_once()

    def status(self) -> dict[str, Any]:
        settings = self._show_settings.get_settings()
        return {
            "connected": self._channel.is_connected,
            "session_active": self._connected,
            "queue_length": len(self.queue),
            "is_processing": self.state.is_processing,
            "should_pre_roll": self.state.should_pre_roll,
            "seconds_since_activity": round(self.state.seconds_since_activity(), 3),
            "last_processed_id": self.ingestor.last_processed_id,
            "utterances_dispatched": self.dispatch.dispatched_count,
            "fillers_sent": self.watchdog.fillers_sent,
            "language": settings.language,
            "detected_language": settings.detected_language,
            "voice_style": settings.voice_style,
        }

    async def shutdown(self) -> None:
        await self.on_disconnect()
        if self.turn_log is not None:
            await self.turn_log.drain()
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()


__all__ = ["SessionController"]
