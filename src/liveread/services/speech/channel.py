"""Contract of the downstream real-time speech channel."""

from typing import Protocol, runtime_checkable


class ChannelClosedError(RuntimeError):
    """Raised when an utterance is sent while no listener is attached."""


@runtime_checkable
class SpeechChannel(Protocol):
    """Anything that can speak one complete utterance at a time."""

    @property
    def is_connected(self) -> bool: ...

    async def send(self, text: str) -> None: ...
