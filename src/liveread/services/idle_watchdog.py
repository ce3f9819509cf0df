"""Idle watchdog that keeps the speech channel from going silent."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Optional, Sequence

from liveread.services.speech import DispatchState, SpeechChannel, UtteranceQueue

if TYPE_CHECKING:
    from liveread.services.turn_log import TurnLog

logger = logging.getLogger(__name__)

FILLER_DIRECTIVES: tuple[str, ...] = (
    "[System: Silence. Do a 'Shoutout Segment'. Read imaginary greetings from listeners "
    "like 'Ate Girl from Cubao' or 'Kuya Joms from Dubai'. High energy!]",
    "[System: Silence. Do a 'Joke Time' segment. Throw a cheesy or funny pick-up line. "
    "Laugh at your own joke.]",
    "[System: Silence. Do a 'Real Talk / Hugot' segment. Give advice about "
    "love/relationships based on the previous story.]",
    "[System: Silence. Tease the next part of the story. 'Abangan niyo ang susunod na "
    "kabanata! Wag bibitiw!']",
    "[System: Silence. Check on the traffic or weather in a funny way. Ad-lib Manila context.]",
)

FILLER_TURN_TEXT = "(Auto-Producer) Injecting Filler Segment..."


class IdleWatchdog:
    """Periodic timer that injects a filler directive after a stretch of silence.

    Runs independently of the dispatch loop. The two only share the activity
    clock in ``DispatchState``.
    """

    def __init__(
        self,
        queue: UtteranceQueue,
        state: DispatchState,
        channel: SpeechChannel,
        *,
        turn_log: Optional["TurnLog"] = None,
        interval_seconds: float = 1.0,
        idle_threshold_seconds: float = 6.0,
        directives: Sequence[str] = FILLER_DIRECTIVES,
        rng: Optional[random.Random] = None,
    ):
        if not directives:
            raise ValueError("At least one filler directive is required")
        self._queue = queue
        self._state = state
        self._channel = channel
        self._turn_log = turn_log
        self.interval_seconds = interval_seconds
        self.idle_threshold_seconds = idle_threshold_seconds
        self._directives = tuple(directives)
        self._rng = rng or random.Random()
        self._task: asyncio.Task[None] | None = None
        self.fillers_sent = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def tick(self) -> bool:
        """Run one watchdog check. Returns True if a filler was injected."""
        if not self._channel.is_connected:
            return False

        idle_for = self._state.seconds_since_activity()
        if (
            self._queue
            or self._state.is_processing
            or idle_for <= self.idle_threshold_seconds
        ):
            return False

        directive = self._rng.choice(self._directives)
        logger.info(f"Dead air detected ({idle_for:.1f}s). Injecting filler segment...")
        if self._turn_log is not None:
            self._turn_log.add_turn("system", FILLER_TURN_TEXT)

        try:
            await self._channel.send(directive)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to inject filler segment: {e}")
            return False
        finally:
            # Wait a full threshold before the next attempt, even after a failure
            self._state.touch()

        self.fillers_sent += 1
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Watchdog tick failed: {e}", exc_info=True)


__all__ = ["FILLER_DIRECTIVES", "FILLER_TURN_TEXT", "IdleWatchdog"]
