"""
Speech Pipeline Package.

This package contains the modules that turn upstream text into paced speech:

- text_segmenter: Splits record text into utterance chunks
- utterance_queue: FIFO of pending chunks plus the consumer's shared state
- dispatch_loop: Single-consumer, paced sender to the speech channel
- channel: Contract of the downstream speech channel

Architecture Overview:

    ┌─────────────┐     ┌───────────────┐     ┌────────────────┐     ┌──────────────┐
    │  RawRecord  │────▶│ TextSegmenter │────▶│ UtteranceQueue │────▶│ DispatchLoop │
    └─────────────┘     └───────────────┘     └────────────────┘     └──────────────┘
                                                                            │
                                                                            ▼
                                                                   ┌─────────────────┐
                                                                   │  SpeechChannel  │
                                                                   └─────────────────┘
                                                                            ▲
                                                                   ┌─────────────────┐
                                                                   │  IdleWatchdog   │
                                                                   └─────────────────┘

Only one utterance is ever in flight: the dispatch loop holds a single permit
and waits an estimated reading time between sends. The idle watchdog writes to
the channel directly when the queue has been empty for too long.
"""

from .channel import ChannelClosedError, SpeechChannel
from .dispatch_loop import DispatchLoop, decorate_utterance
from .text_segmenter import (
    TextSegmenter,
    UtteranceChunk,
    has_inline_markup,
    is_dialogue_line,
    segment_text,
    split_sentences,
)
from .utterance_queue import DispatchState, UtteranceQueue

__all__ = [
    "ChannelClosedError",
    "DispatchLoop",
    "DispatchState",
    "SpeechChannel",
    "TextSegmenter",
    "UtteranceChunk",
    "UtteranceQueue",
    "decorate_utterance",
    "has_inline_markup",
    "is_dialogue_line",
    "segment_text",
    "split_sentences",
]
