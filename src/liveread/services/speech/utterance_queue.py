"""Pending utterance buffer and the state shared by its single consumer."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator

from .text_segmenter import UtteranceChunk

Clock = Callable[[], float]


class UtteranceQueue:
    """FIFO of chunks waiting to be spoken.

    The ingestor appends whole batches; only the dispatch loop removes from
    the front.
    """

    def __init__(self) -> None:
        self._items: deque[UtteranceChunk] = deque()

    def extend(self, chunks: Iterable[UtteranceChunk]) -> int:
        """Append a batch as one contiguous run. Returns the number appended."""
        batch = list(chunks)
        self._items.extend(batch)
        return len(batch)

    def peek(self) -> UtteranceChunk | None:
        return self._items[0] if self._items else None

    def pop(self) -> UtteranceChunk:
        return self._items.popleft()

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[UtteranceChunk]:
        return iter(list(self._items))


@dataclass
class DispatchState:
    """Per-session flags for the dispatch loop and the idle watchdog.

    ``last_activity_at`` is the activity clock, a ``time.monotonic`` reading.
    """

    clock: Clock = field(default=time.monotonic, repr=False)
    is_processing: bool = False
    should_pre_roll: bool = False
    last_activity_at: float = 0.0

    def __post_init__(self) -> None:
        if not self.last_activity_at:
            self.last_activity_at = self.clock()

    def touch(self) -> None:
        """Mark activity now."""
        self.last_activity_at = self.clock()

    def seconds_since_activity(self) -> float:
        return max(0.0, self.clock() - self.last_activity_at)

    def reset(self, *, pre_roll: bool) -> None:
        self.is_processing = False
        self.should_pre_roll = pre_roll
        self.touch()
