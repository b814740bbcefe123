"""Playback-time lookup of the active token.

WHY: The reader asks "which token is being spoken now?" on every playback
tick. Alignment output is sorted by start, so the answer can be found by
binary search instead of a scan over the whole article.

HOW: PlaybackLocator keeps the sorted starts and the running maximum of
the ends. For a time t, bisect on the starts bounds the candidates that
began at or before t; bisect on the running maximum then finds the first
of them that has not ended before t.

RULES:
- Intervals are inclusive on both ends: start <= t <= end
- The first containing mapping in start order wins (overlaps are possible
  between adjacent estimated tokens)
- No containing mapping → -1
- locate() scans linearly for tiny inputs and binary-searches otherwise,
  reusing the index built for the last mappings sequence it was given;
  a sequence must not be mutated once it has been queried
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import List, Optional, Sequence, Tuple

from hanzi_sync import config
from hanzi_sync.core.ir import SegmentMapping, TokenMapping

NO_TOKEN = -1


class PlaybackLocator:
    """O(log n) active-token queries over one alignment result."""

    def __init__(self, mappings: Sequence[TokenMapping]) -> None:
        self._mappings: List[TokenMapping] = sorted(mappings, key=lambda m: m.start)
        self._starts: List[float] = [m.start for m in self._mappings]
        self._max_ends: List[float] = []
        running = float("-inf")
        for mapping in self._mappings:
            running = max(running, mapping.end)
            self._max_ends.append(running)

    def __len__(self) -> int:
        return len(self._mappings)

    def locate(self, time_ms: float) -> int:
        """Return the token index active at time_ms, or -1."""
        candidates = bisect_right(self._starts, time_ms)
        if candidates == 0:
            return NO_TOKEN
        first = bisect_left(self._max_ends, time_ms, 0, candidates)
        if first == candidates:
            return NO_TOKEN
        return self._mappings[first].token_index


def _linear_locate(mappings: Sequence[TokenMapping], time_ms: float) -> int:
    for mapping in mappings:
        if mapping.contains(time_ms):
            return mapping.token_index
    return NO_TOKEN


_CACHED_LOCATOR: Optional[Tuple[Sequence[TokenMapping], int, PlaybackLocator]] = None


def _get_locator(mappings: Sequence[TokenMapping]) -> PlaybackLocator:
    global _CACHED_LOCATOR
    cached = _CACHED_LOCATOR
    if cached is not None and cached[0] is mappings and cached[1] == len(mappings):
        return cached[2]
    locator = PlaybackLocator(mappings)
    _CACHED_LOCATOR = (mappings, len(mappings), locator)
    return locator


def locate(mappings: Sequence[TokenMapping], time_ms: float) -> int:
    """Return the index of the token whose interval contains time_ms, or -1.

    Repeated calls with the same ``mappings`` object cost O(log n); the
    index is rebuilt only when a different sequence is passed.
    """
    if len(mappings) <= config.LOCATOR_LINEAR_SCAN_MAX:
        return _linear_locate(mappings, time_ms)
    return _get_locator(mappings).locate(time_ms)


def segment_at_time(
    segment_mappings: Sequence[SegmentMapping],
    time_s: float,
) -> Optional[SegmentMapping]:
    """Return the first segment mapping spoken at time_s (seconds), or None."""
    time_ms = time_s * 1000
    for mapping in segment_mappings:
        if mapping.start <= time_ms <= mapping.end:
            return mapping
    return None
