import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from liveread.config import Settings  # noqa: E402


class RecordingChannel:
    """In-memory speech channel that remembers every utterance."""

    def __init__(self, connected: bool = True, fail_on: set[str] | None = None):
        self.connected = connected
        self.sent: list[str] = []
        self.fail_on = fail_on or set()

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def send(self, text: str) -> None:
        if text in self.fail_on:
            raise RuntimeError(f"send failed for {text!r}")
        self.sent.append(text)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with every wait shrunk so pipeline tests finish quickly."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        pre_roll_seconds=0,
        retrigger_delay_seconds=0.001,
        pacing_jitter_ms=0,
        dialogue_base_delay_ms=0,
        watchdog_interval_seconds=0.01,
        idle_threshold_seconds=60,
        poll_interval_seconds=60,
    )
