"""Binding of TTS boundary events to TTS segments.

WHY: Boundary events say *when* something was spoken but their text is
only approximately the text we sent. Binding each event to a located
Segment gives it a position in the source text, which the token aligner
needs to reason about compound tokens.

HOW: A single greedy pass with a cursor over the segments. Both sequences
follow the source text, so each event is compared with the segments from
the cursor onwards and bound to the first one whose text contains the
event word or is contained in it.

RULES:
- Bind test: event word in segment text, or segment text in event word
- After a bind the cursor moves past the segment, unless the event word
  covered only the leading part of the segment's unconsumed text; then the
  cursor stays so the following fragments of that segment can bind too
- Unbound event → dropped, and the cursor still advances by one
- Empty (whitespace-only) event word → dropped, cursor unchanged
- lookahead bounds how many segments past the cursor are examined
  (None = all remaining segments)
- The mapping's word is the segment text when the event word contains the
  segment (punctuation-joined events such as "你好，"), else the trimmed
  event word, so fragments of one segment keep their own text
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from hanzi_sync.core.ir import BoundaryEvent, Segment, SegmentMapping

logger = logging.getLogger(__name__)


def _binds(segment_text: str, word: str) -> bool:
    return word in segment_text or segment_text in word


def map_boundaries(
    segments: Sequence[Segment],
    events: Sequence[BoundaryEvent],
    lookahead: Optional[int] = None,
) -> List[SegmentMapping]:
    """Bind boundary events to segments, best effort, in one pass.

    Args:
        segments: TTS segments in source order.
        events: Normalized boundary events in time order.
        lookahead: Maximum segments examined per event, counting the
                   cursor segment; None scans to the end.

    Returns:
        One SegmentMapping per bound event, in event order.
    """
    mappings: List[SegmentMapping] = []
    cursor = 0
    consumed = 0  # characters of segments[cursor] already covered by events
    dropped = 0

    for event in events:
        word = event.word.strip()
        if not word:
            dropped += 1
            continue

        limit = len(segments)
        if lookahead is not None:
            limit = min(limit, cursor + max(lookahead, 1))

        bound = False
        for position in range(cursor, limit):
            segment = segments[position]
            if not _binds(segment.text, word):
                continue

            mappings.append(SegmentMapping(
                segment_index=segment.index,
                start=event.start,
                duration=event.duration,
                word=segment.text if segment.text in word else word,
            ))

            offset = consumed if position == cursor else 0
            remainder = segment.text[offset:]
            if len(word) < len(remainder) and remainder.startswith(word):
                cursor, consumed = position, offset + len(word)
            else:
                cursor, consumed = position + 1, 0
            bound = True
            break

        if not bound:
            logger.debug("No segment matches boundary word %r; dropping it", word)
            dropped += 1
            cursor += 1
            consumed = 0

    if dropped:
        logger.info(
            "Dropped %d of %d boundary events while mapping to %d segments",
            dropped, len(events), len(segments),
        )
    return mappings
