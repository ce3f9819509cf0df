"""
Dispatch Loop for Paced Utterance Delivery.

This module is the sole consumer of the utterance queue. It sends one chunk
at a time to the speech channel and waits roughly as long as the chunk takes
to read aloud before sending the next one.

Architecture:
    UtteranceQueue → DispatchLoop.run() → SpeechChannel.send()

Concurrency:
- ``try_start()`` may be called from anywhere (ingestor, the loop's own
  re-trigger, reconnection) and is a no-op while a loop body is active.
- ``DispatchState.is_processing`` is the single permit; it is released in a
  ``finally`` block so a failed send never wedges the pipeline.
- The only suspension points are the pre-roll wait and the per-utterance
  pacing wait, both bounded.

Usage:
    loop = DispatchLoop(queue, state, channel, show_settings)
    queue.extend(chunks)
    loop.try_start()
    ...
    await loop.stop()  # on disconnect
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Optional

from liveread.schemas.show_settings import StyleProfile

from .channel import SpeechChannel
from .text_segmenter import UtteranceChunk
from .utterance_queue import DispatchState, UtteranceQueue

if TYPE_CHECKING:
    from liveread.services.show_settings import ShowSettingsService
    from liveread.services.turn_log import TurnLog

logger = logging.getLogger(__name__)

LAUGH_CUE = "[laugh]"
LAUGH_PROBABILITY = 0.2


def decorate_utterance(
    chunk: UtteranceChunk, voice_style: str, rng: random.Random
) -> str:
    """Return the text to speak for a chunk under the given style.

    Dialogue and pre-marked-up chunks are passed through untouched.
    """
    if chunk.is_dialogue or chunk.has_embedded_markup:
        return chunk.text

    if voice_style == "breathy":
        if rng.random() < LAUGH_PROBABILITY:
            return f"{LAUGH_CUE} {chunk.text}"
    elif voice_style == "dramatic":
        return f'<prosody rate="slow">{chunk.text}</prosody>'

    return chunk.text


class DispatchLoop:
    """
    Paced, single-consumer sender of queued utterances.

    Attributes:
        pre_roll_seconds: Buffering wait before the first utterance of a connection
        retrigger_delay_seconds: Delay before restarting when work remains after exit
        jitter_ms: Upper bound of uniform random jitter added to each pause
        dialogue_base_delay_ms: Base pause after dialogue lines
    """

    def __init__(
        self,
        queue: UtteranceQueue,
        state: DispatchState,
        channel: SpeechChannel,
        show_settings: "ShowSettingsService",
        *,
        turn_log: Optional["TurnLog"] = None,
        pre_roll_seconds: float = 6.0,
        retrigger_delay_seconds: float = 0.05,
        jitter_ms: int = 300,
        dialogue_base_delay_ms: int = 200,
        rng: Optional[random.Random] = None,
    ):
        self._queue = queue
        self._state = state
        self._channel = channel
        self._show_settings = show_settings
        self._turn_log = turn_log
        self.pre_roll_seconds = pre_roll_seconds
        self.retrigger_delay_seconds = retrigger_delay_seconds
        self.jitter_ms = jitter_ms
        self.dialogue_base_delay_ms = dialogue_base_delay_ms
        self._rng = rng or random.Random()
        self._task: asyncio.Task[None] | None = None
        self._retrigger: asyncio.TimerHandle | None = None
        self.dispatched_count = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def try_start(self) -> asyncio.Task[None] | None:
        """Start consuming the queue unless a loop body is already active."""
        if self._retrigger is not None:
            self._retrigger.cancel()
            self._retrigger = None
        if self._state.is_processing or self.is_running:
            return None
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Abandon any in-flight wait and release the permit."""
        if self._retrigger is not None:
            self._retrigger.cancel()
            self._retrigger = None
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._state.is_processing = False

    def pacing_delay(self, chunk: UtteranceChunk, profile: StyleProfile) -> float:
        """Seconds to wait after sending ``chunk`` before the next utterance."""
        read_ms = chunk.word_count / profile.reading_rate_wps * 1000
        base_ms = self.dialogue_base_delay_ms if chunk.is_dialogue else profile.base_delay_ms
        jitter = self._rng.uniform(0, self.jitter_ms) if self.jitter_ms else 0.0
        return (read_ms + base_ms + jitter) / 1000

    async def run(self) -> None:
        """Loop body. Returns at once if another body holds the permit."""
        if self._state.is_processing:
            return
        self._state.is_processing = True
        cancelled = False

        try:
            if self._state.should_pre_roll:
                logger.info(
                    f"Buffering stream for smooth playback ({self.pre_roll_seconds:g}s)..."
                )
                await asyncio.sleep(self.pre_roll_seconds)
                self._state.should_pre_roll = False

            while self._queue and self._channel.is_connected:
                chunk = self._queue.peek()
                if chunk is None:
                    break
                settings = self._show_settings.get_settings()
                text = decorate_utterance(chunk, settings.voice_style, self._rng)

                if not text.strip():
                    self._queue.pop()
                    continue

                if self._turn_log is not None:
                    self._turn_log.add_turn("system", text)

                try:
                    await self._channel.send(text)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    # Not retried: the head is dropped so a broken channel cannot spin the loop
                    self._queue.pop()
                    logger.error(f"Failed to send utterance, dropping it: {e}", exc_info=True)
                    break

                self._state.touch()
                self._queue.pop()
                self.dispatched_count += 1

                delay = self.pacing_delay(chunk, settings.style_profile)
                logger.debug(
                    f"Dispatched ({chunk.word_count} words, next in {delay:.2f}s): {text[:60]}"
                )
                await asyncio.sleep(delay)

        except asyncio.CancelledError:
            cancelled = True
            logger.debug("Dispatch loop cancelled")
            raise
        except Exception as e:
            logger.error(f"Error in dispatch loop: {e}", exc_info=True)
        finally:
            self._state.is_processing = False
            if not cancelled and self._queue and self._channel.is_connected:
                self._schedule_retrigger()

    def _schedule_retrigger(self) -> None:
        loop = asyncio.get_running_loop()
        self._retrigger = loop.call_later(self.retrigger_delay_seconds, self.try_start)


__all__ = ["DispatchLoop", "decorate_utterance"]
