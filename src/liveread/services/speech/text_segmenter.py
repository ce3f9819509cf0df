"""
Text Segmenter for the Live Read Pipeline.

This module turns one upstream text record into an ordered list of utterance
chunks that the dispatch loop sends to the speech channel one at a time.

Architecture:
    RawRecord text → TextSegmenter.segment() → UtteranceQueue

Segmentation happens in two passes:

1. Sentence split. A pluggable ``sentence_splitter`` may be supplied (for
   example a locale-aware boundary detector). The default splitter masks
   common abbreviation periods (``Mr.``, ``e.g.``, ``No.``...), splits on
   ``.``/``!``/``?`` runs, and restores the masked periods.
2. Greedy fold. Sentences are packed into chunks. A sentence that opens a new
   speaker (``Name:``) always starts a new chunk so distinct voices never
   blend; otherwise a chunk is flushed when the next sentence would push it
   past the hard limit, or once it already exceeds the soft limit.

A single sentence longer than the hard limit is emitted unmodified as its own
chunk; sentences are never split in the middle.

Usage:
    segmenter = TextSegmenter(soft_limit=80, hard_limit=180)
    queue.extend(segmenter.segment(record_text))
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

SentenceSplitter = Callable[[str], List[str]]

# "John:", "DETECTIVE:", "Alice (Angry):"
_SPEAKER_PREFIX_RE = re.compile(r"^([A-Z][a-zA-Z0-9\s()]+):")
_INLINE_MARKUP_RE = re.compile(r"<[^>]+>")

_MASK = "\x00"
_TITLE_ABBREVIATION_RE = re.compile(
    r"\b(Mr|Mrs|Ms|Dr|Prof|Rev|Gen|Sen|Rep|Gov|St|Mt)\."
)
_NUMBER_ABBREVIATION_RE = re.compile(r"\bNo\.")
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+[\"']?|[^.!?]+$")


def is_dialogue_line(text: str) -> bool:
    """True when the text opens with a ``Name:`` speaker prefix."""
    return bool(_SPEAKER_PREFIX_RE.match(text))


def has_inline_markup(text: str) -> bool:
    """True when the text already carries inline tags such as SSML."""
    return bool(_INLINE_MARKUP_RE.search(text))


def split_sentences(text: str) -> List[str]:
    """Split text into sentence-like units, keeping abbreviation periods intact."""
    if not text:
        return []

    masked = _TITLE_ABBREVIATION_RE.sub(lambda m: m.group(1) + _MASK, text)
    masked = masked.replace("e.g.", f"e{_MASK}g{_MASK}").replace("i.e.", f"i{_MASK}e{_MASK}")
    masked = _NUMBER_ABBREVIATION_RE.sub(f"No{_MASK}", masked)

    matches = _SENTENCE_RE.findall(masked) or [masked]
    return [sentence.replace(_MASK, ".") for sentence in matches]


@dataclass(frozen=True)
class UtteranceChunk:
    """One unit of text dispatched to the speech channel in a single call."""

    text: str
    is_dialogue: bool = False
    has_embedded_markup: bool = False

    @classmethod
    def from_text(cls, text: str) -> "UtteranceChunk":
        cleaned = text.strip()
        return cls(
            text=cleaned,
            is_dialogue=is_dialogue_line(cleaned),
            has_embedded_markup=has_inline_markup(cleaned),
        )

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class TextSegmenter:
    """
    Stateless splitter from raw record text to utterance chunks.

    Attributes:
        soft_limit: Once a chunk is longer than this, the next sentence starts a new one
        hard_limit: A chunk never grows past this by appending another sentence
    """

    DEFAULT_SOFT_LIMIT = 80
    DEFAULT_HARD_LIMIT = 180

    def __init__(
        self,
        soft_limit: int = DEFAULT_SOFT_LIMIT,
        hard_limit: int = DEFAULT_HARD_LIMIT,
        sentence_splitter: Optional[SentenceSplitter] = None,
    ):
        if soft_limit > hard_limit:
            raise ValueError("soft_limit must not exceed hard_limit")
        self.soft_limit = soft_limit
        self.hard_limit = hard_limit
        self._split = sentence_splitter or split_sentences

    def segment(self, text: str) -> List[UtteranceChunk]:
        """
        Segment text into ordered utterance chunks.

        Never raises on arbitrary string input; empty or whitespace-only
        text yields an empty list.
        """
        if not text or not text.strip():
            return []

        chunks: List[str] = []
        buffer = ""

        for sentence in self._split(text):
            clean = sentence.strip()
            if not clean:
                continue

            if not buffer:
                buffer = clean
            elif (
                is_dialogue_line(clean)
                or len(buffer) + 1 + len(clean) > self.hard_limit
                or len(buffer) > self.soft_limit
            ):
                chunks.append(buffer)
                buffer = clean
            else:
                buffer = f"{buffer} {clean}"

        if buffer:
            chunks.append(buffer)

        return [UtteranceChunk.from_text(chunk) for chunk in chunks if chunk.strip()]


def segment_text(text: str) -> List[UtteranceChunk]:
    """Segment with the default limits."""
    return TextSegmenter().segment(text)
