"""Append-only log of everything sent to the speech channel."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, Optional

from liveread.logging_handlers import date_stamped_path

logger = logging.getLogger(__name__)

TurnRole = Literal["user", "agent", "system"]
TurnPublisher = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class ConversationTurn:
    role: TurnRole
    text: str
    is_final: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "text": self.text,
            "is_final": self.is_final,
            "timestamp": self.timestamp.isoformat(),
        }


class TurnLogWriter:
    """Persist turns as JSON lines in a date-stamped file per session."""

    def __init__(
        self,
        base_dir: Path,
        *,
        min_level: int | None,
        session_id: str = "broadcast",
        current_time: datetime | None = None,
    ) -> None:
        self._base_dir = base_dir.resolve()
        self._min_level = min_level
        self._path = date_stamped_path(
            self._base_dir,
            f"turns_{session_id.replace('/', '_')}",
            current_time or datetime.now(timezone.utc),
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def enabled(self) -> bool:
        # Turns are INFO-level events
        return self._min_level is not None and logging.INFO >= self._min_level

    async def write(self, turn: ConversationTurn) -> Path | None:
        if not self.enabled:
            return None
        line = json.dumps(turn.to_dict(), ensure_ascii=False) + "\n"
        await asyncio.to_thread(self._append_entry, self._path, line)
        return self._path

    def _append_entry(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(content)


class TurnLog:
    """Bounded in-memory turn history with optional file and listener sinks.

    Sinks run as background tasks; their failures are logged and never reach
    the caller.
    """

    def __init__(
        self,
        max_turns: int = 500,
        *,
        writer: Optional[TurnLogWriter] = None,
        publisher: Optional[TurnPublisher] = None,
    ) -> None:
        self._turns: deque[ConversationTurn] = deque(maxlen=max_turns)
        self._writer = writer
        self._publisher = publisher
        self._pending: set[asyncio.Task[None]] = set()

    def set_publisher(self, publisher: Optional[TurnPublisher]) -> None:
        self._publisher = publisher

    @property
    def turns(self) -> list[ConversationTurn]:
        return list(self._turns)

    def add_turn(
        self, role: TurnRole, text: str, is_final: bool = True
    ) -> ConversationTurn:
        turn = ConversationTurn(role=role, text=text, is_final=is_final)
        self._turns.append(turn)
        self._emit(turn)
        return turn

    def update_last_turn(self, **changes: Any) -> ConversationTurn | None:
        if not self._turns:
            return None
        last = self._turns[-1]
        for key in ("role", "text", "is_final"):
            if key in changes:
                setattr(last, key, changes[key])
        return last

    def clear(self) -> None:
        self._turns.clear()

    async def drain(self) -> None:
        """Wait for pending sink writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _emit(self, turn: ConversationTurn) -> None:
        if self._writer is None and self._publisher is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self._deliver(turn))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, turn: ConversationTurn) -> None:
        if self._writer is not None:
            try:
                await self._writer.write(turn)
            except Exception as e:
                logger.warning(f"Failed to persist turn: {e}")
        if self._publisher is not None:
            try:
                await self._publisher({"type": "turn", **turn.to_dict()})
            except Exception as e:
                logger.warning(f"Failed to publish turn: {e}")


__all__ = ["ConversationTurn", "TurnLog", "TurnLogWriter"]
