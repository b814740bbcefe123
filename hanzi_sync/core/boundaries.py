"""Normalization of raw TTS word-boundary events.

WHY: Boundary events come from a black-box engine in tick units and are
only approximately trustworthy. Everything downstream assumes clean,
millisecond, time-ordered events, so this module is the single place where
raw events are validated, converted, and repaired.

HOW: normalize_boundaries() reads each raw event (accepting the engine's
key spellings), converts ticks to milliseconds with the configured tick
resolution, clamps negative values to zero, and returns the events sorted
by start. normalize_boundary_ms() does the same for events already in
milliseconds, the shape stored in the TTS cache.

RULES:
- Missing field, non-numeric or non-finite value, non-string word → BoundaryError
- Negative start or duration → clamped to 0 (logged as a warning)
- Output is sorted by start; the sort is stable, so ties keep engine order
- Out-of-order input is repaired by the sort and logged as a warning
- ticks_per_ms must be positive; a bad resolution is a configuration error
  and raises a plain ValueError, not BoundaryError
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from hanzi_sync import config
from hanzi_sync.core.ir import BoundaryEvent, SegmentMapping

logger = logging.getLogger(__name__)

_WORD_KEYS = ("word", "text")
_OFFSET_TICK_KEYS = ("audioOffsetTicks", "audio_offset_ticks", "audioOffset", "offset")
_DURATION_TICK_KEYS = ("durationTicks", "duration_ticks", "duration")
_START_MS_KEYS = ("start",)
_DURATION_MS_KEYS = ("duration",)


class BoundaryError(ValueError):
    """A raw boundary event is malformed and cannot be normalized."""


def _field(raw: Mapping[str, Any], keys: Tuple[str, ...], position: int) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    raise BoundaryError(
        "boundary event {} is missing field {!r}: {!r}".format(position, keys[0], raw)
    )


def _number(value: Any, name: str, position: int) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise BoundaryError(
            "boundary event {} has non-numeric {}: {!r}".format(position, name, value)
        )
    number = float(value)
    if not math.isfinite(number):
        raise BoundaryError(
            "boundary event {} has non-finite {}: {!r}".format(position, name, value)
        )
    if number < 0:
        logger.warning(
            "Clamping negative %s %r of boundary event %d to 0", name, value, position
        )
        return 0.0
    return number


def _build_events(
    raw_events: Iterable[Mapping[str, Any]],
    start_keys: Tuple[str, ...],
    duration_keys: Tuple[str, ...],
    scale: float,
) -> List[BoundaryEvent]:
    events: List[BoundaryEvent] = []
    for position, raw in enumerate(raw_events):
        if not isinstance(raw, Mapping):
            raise BoundaryError(
                "boundary event {} is not an object: {!r}".format(position, raw)
            )
        word = _field(raw, _WORD_KEYS, position)
        if not isinstance(word, str):
            raise BoundaryError(
                "boundary event {} has non-string word: {!r}".format(position, word)
            )
        start = _number(_field(raw, start_keys, position), "start", position)
        duration = _number(_field(raw, duration_keys, position), "duration", position)
        events.append(BoundaryEvent(word=word, start=start / scale, duration=duration / scale))

    ordered = sorted(events, key=lambda e: e.start)
    if ordered != events:
        logger.warning("Boundary events were not chronological; reordered %d events", len(events))
    return ordered


def normalize_boundaries(
    raw_events: Iterable[Mapping[str, Any]],
    ticks_per_ms: Optional[float] = None,
) -> List[BoundaryEvent]:
    """Convert raw tick-based boundary events into sorted millisecond events.

    Args:
        raw_events: Events as reported by the engine, e.g.
            ``{"word": "你", "audioOffsetTicks": 500000, "durationTicks": 1500000}``.
            ``text``/``audioOffset``/``duration`` spellings are accepted too.
        ticks_per_ms: Tick resolution; defaults to config.TTS_TICKS_PER_MS.

    Raises:
        BoundaryError: If an event is malformed.
        ValueError: If ticks_per_ms is not a positive finite number.
    """
    scale = config.TTS_TICKS_PER_MS if ticks_per_ms is None else ticks_per_ms
    if not scale or scale <= 0 or not math.isfinite(scale):
        raise ValueError("ticks_per_ms must be a positive number, got {!r}".format(scale))
    return _build_events(raw_events, _OFFSET_TICK_KEYS, _DURATION_TICK_KEYS, scale)


def normalize_boundary_ms(raw_events: Iterable[Mapping[str, Any]]) -> List[BoundaryEvent]:
    """Validate and sort events already expressed as ``{word, start, duration}`` ms."""
    return _build_events(raw_events, _START_MS_KEYS, _DURATION_MS_KEYS, 1.0)


def total_duration_ms(
    items: Sequence[Union[BoundaryEvent, SegmentMapping]],
) -> float:
    """Return the latest end time among events or mappings (0.0 when empty)."""
    if not items:
        return 0.0
    return max(item.start + item.duration for item in items)
