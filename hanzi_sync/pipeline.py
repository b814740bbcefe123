"""End-to-end alignment for one synthesis request.

WHY: The TTS endpoint needs one call that turns (text, vocabulary, boundary
events) into everything the reader consumes: tokens, their intervals, and
the intermediate segments and mappings worth caching. Keeping the wiring
here keeps the core stages independent of each other.

HOW: build_alignment() runs the stages in order:
  tokenize → segment_for_tts → normalize_boundaries → map_boundaries → align
build_alignment_from_cache() skips synthesis-side work and re-aligns a
CacheEntry against a fresh tokenization, since the vocabulary may have
changed since the entry was cached.

RULES:
- Segments are computed from the original text; ttsText is what gets synthesized
- A malformed boundary batch is logged and replaced by no events, so the
  aligner falls back to a uniform distribution over audio_duration_ms
- totalDuration is the latest boundary end, or audio_duration_ms when larger
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from hanzi_sync import config
from hanzi_sync.cache import CacheEntry
from hanzi_sync.core.aligner import align
from hanzi_sync.core.boundaries import (
    BoundaryError,
    normalize_boundaries,
    normalize_boundary_ms,
    total_duration_ms,
)
from hanzi_sync.core.ir import (
    BoundaryEvent,
    Segment,
    SegmentMapping,
    Token,
    TokenMapping,
    VocabularyEntry,
)
from hanzi_sync.core.locator import PlaybackLocator
from hanzi_sync.core.segment_mapper import map_boundaries
from hanzi_sync.core.tokenizer import Vocabulary, tokenize
from hanzi_sync.core.tts_segmenter import CutFunction, preprocess_for_tts, segment_for_tts

logger = logging.getLogger(__name__)

VocabularyLike = Union[Vocabulary, Iterable[VocabularyEntry], None]


@dataclass(frozen=True)
class AlignmentResult:
    """Everything the reader needs to highlight one text during playback."""

    text: str
    tts_text: str
    total_duration: float
    timings: List[BoundaryEvent] = field(default_factory=list)
    segments: List[Segment] = field(default_factory=list)
    mappings: List[SegmentMapping] = field(default_factory=list)
    tokens: List[Token] = field(default_factory=list)
    token_mappings: List[TokenMapping] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON response body (camelCase), without audio."""
        return {
            "ttsText": self.tts_text,
            "timings": [t.to_dict() for t in self.timings],
            "totalDuration": self.total_duration,
            "segments": [s.to_dict() for s in self.segments],
            "mappings": [m.to_dict() for m in self.mappings],
            "tokens": [t.to_dict() for t in self.tokens],
            "tokenMappings": [m.to_dict() for m in self.token_mappings],
        }

    def to_cache_entry(
        self,
        voice: str = config.DEFAULT_VOICE,
        rate: str = config.DEFAULT_RATE,
    ) -> CacheEntry:
        return CacheEntry(
            text=self.text,
            voice=voice,
            rate=rate,
            total_duration=self.total_duration,
            timings=list(self.timings),
            segments=list(self.segments),
            mappings=list(self.mappings),
        )

    def locator(self) -> PlaybackLocator:
        return PlaybackLocator(self.token_mappings)


def _as_vocabulary(vocabulary: VocabularyLike) -> Vocabulary:
    if isinstance(vocabulary, Vocabulary):
        return vocabulary
    return Vocabulary(vocabulary or ())


def build_alignment(
    text: str,
    vocabulary: VocabularyLike,
    raw_boundaries: Iterable[Mapping[str, Any]],
    ticks_per_ms: Optional[float] = None,
    units: str = "ticks",
    audio_duration_ms: float = 0.0,
    cut: Optional[CutFunction] = None,
) -> AlignmentResult:
    """Align text against the boundary events of a fresh synthesis.

    Args:
        text: Original article text.
        vocabulary: Words the learner's reader highlights.
        raw_boundaries: Engine boundary events; tick units unless units="ms".
        ticks_per_ms: Tick resolution override (units="ticks" only).
        units: "ticks" or "ms".
        audio_duration_ms: Known audio length, used when it exceeds the
                           latest boundary end.
        cut: Word segmenter override for the TTS segmenter.

    Raises:
        ValueError: Unknown units or a non-positive ticks_per_ms. Only
                    malformed events fall back to uniform timing.
    """
    if units not in ("ticks", "ms"):
        raise ValueError("units must be 'ticks' or 'ms', got {!r}".format(units))

    vocab = _as_vocabulary(vocabulary)
    tokens = tokenize(text, vocab)
    segments = segment_for_tts(text, cut=cut)

    try:
        if units == "ms":
            timings = normalize_boundary_ms(raw_boundaries)
        else:
            timings = normalize_boundaries(raw_boundaries, ticks_per_ms=ticks_per_ms)
    except BoundaryError:
        logger.warning("Discarding malformed boundary events; using uniform timing", exc_info=True)
        timings = []

    total = max(total_duration_ms(timings), audio_duration_ms)
    mappings = map_boundaries(segments, timings, lookahead=config.SEGMENT_LOOKAHEAD)
    token_mappings = align(tokens, segments, mappings, total_duration=total)

    logger.info(
        "Aligned text of %d chars: %d boundaries, %d segments, %d mappings, %d tokens",
        len(text), len(timings), len(segments), len(mappings), len(tokens),
    )
    return AlignmentResult(
        text=text,
        tts_text=preprocess_for_tts(text),
        total_duration=total,
        timings=timings,
        segments=segments,
        mappings=mappings,
        tokens=tokens,
        token_mappings=token_mappings,
    )


def build_alignment_from_cache(
    text: str,
    vocabulary: VocabularyLike,
    entry: CacheEntry,
) -> AlignmentResult:
    """Re-align a cached synthesis against a fresh tokenization of text."""
    tokens = tokenize(text, _as_vocabulary(vocabulary))
    token_mappings = align(tokens, entry.segments, entry.mappings, total_duration=entry.total_duration)
    logger.info("Re-aligned cached synthesis: %d tokens", len(tokens))
    return AlignmentResult(
        text=text,
        tts_text=preprocess_for_tts(text),
        total_duration=entry.total_duration,
        timings=list(entry.timings),
        segments=list(entry.segments),
        mappings=list(entry.mappings),
        tokens=tokens,
        token_mappings=token_mappings,
    )
