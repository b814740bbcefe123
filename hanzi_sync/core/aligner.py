"""Token-to-audio alignment: one time interval per display token.

WHY: Display tokens come from the learner's vocabulary; boundary events
come from the TTS engine's own segmentation. The two disagree in
granularity all the time ("北京" as one token but "北" + "京" as two
events, or the reverse), yet the reader must highlight every token while
it is spoken. This module reconciles them and never gives up: a token
without timing evidence still gets a plausible estimate.

HOW: Three pure phases thread an immutable AlignmentState (bound token
mappings + the set of consumed segment-mapping positions):
  exact_match_phase: a mapping whose word equals a token's text binds it
  compound_phase:   consecutive fragments whose words concatenate to a
                    token's text bind it as one interval
  gap_fill_phase:   every remaining token is estimated from its
                    evidenced neighbours (punctuation anchoring,
                    interpolation, extrapolation, uniform fallback)
align() runs the phases in order, sorts by start, and checks totality.

RULES:
- Exactly one TokenMapping per token; a violation raises AlignmentError
- Mismatched input never raises; it degrades to estimated intervals
- Estimated intervals carry segment_index == -1
- Punctuation-only gaps get a fixed PUNCTUATION_DURATION_MS interval
- Edge extrapolation assumes min(EXTRAPOLATION_CAP_MS, total / token count)
  per token
- No evidence at all → uniform split of the total duration by token position
- start <= end for every interval; negative gaps are clamped to 0
- Output is sorted by start; ties keep token order
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from hanzi_sync import config
from hanzi_sync.core.boundaries import total_duration_ms
from hanzi_sync.core.charclass import is_punctuation
from hanzi_sync.core.ir import (
    ESTIMATED_SEGMENT_INDEX,
    Segment,
    SegmentMapping,
    Token,
    TokenMapping,
)

logger = logging.getLogger(__name__)


class AlignmentError(RuntimeError):
    """The aligner produced a result that violates totality (a bug)."""


@dataclass(frozen=True)
class AlignmentState:
    """Partial alignment passed from one phase to the next.

    RULES:
    - bound maps token index → TokenMapping backed by timing evidence
    - used holds positions (in the segment-mapping list) already consumed
    - Phases return a new state; they never modify the one they receive
    """

    bound: Mapping[int, TokenMapping] = field(default_factory=dict)
    used: FrozenSet[int] = frozenset()


def _timeline(segment_mappings: Sequence[SegmentMapping]) -> List[int]:
    """Positions of segment mappings ordered by start (stable)."""
    return sorted(range(len(segment_mappings)), key=lambda p: segment_mappings[p].start)


def exact_match_phase(
    tokens: Sequence[Token],
    segment_mappings: Sequence[SegmentMapping],
    state: AlignmentState,
) -> AlignmentState:
    """Bind each unused mapping to the first unmapped token with the same text.

    Mappings are visited in list order; identical token texts are handed
    out first come, first served.
    """
    bound: Dict[int, TokenMapping] = dict(state.bound)
    used = set(state.used)

    waiting: Dict[str, Deque[Token]] = defaultdict(deque)
    for token in tokens:
        if token.index not in bound:
            waiting[token.text].append(token)

    for position, mapping in enumerate(segment_mappings):
        if position in used:
            continue
        queue = waiting.get(mapping.word.strip())
        if not queue:
            continue
        token = queue.popleft()
        bound[token.index] = TokenMapping(
            token_index=token.index,
            segment_index=mapping.segment_index,
            text=token.text,
            start=mapping.start,
            end=mapping.end,
        )
        used.add(position)

    return AlignmentState(bound=bound, used=frozenset(used))


def _compound_run(
    text: str,
    segment_mappings: Sequence[SegmentMapping],
    timeline: Sequence[int],
    used: FrozenSet[int],
) -> Optional[List[int]]:
    """Find consecutive unused mappings whose words concatenate to text.

    A candidate that breaks the prefix releases the run collected so far
    and may itself start a new run.
    """
    run: List[int] = []
    built = ""
    for position in timeline:
        if position in used:
            continue
        word = segment_mappings[position].word.strip()
        if not word:
            continue
        if not text.startswith(built + word):
            if not run:
                continue
            run, built = [], ""
            if not text.startswith(word):
                continue
        run.append(position)
        built += word
        if built == text:
            return run
    return None


def compound_phase(
    tokens: Sequence[Token],
    segment_mappings: Sequence[SegmentMapping],
    state: AlignmentState,
) -> AlignmentState:
    """Bind multi-fragment tokens by accumulating consecutive unused mappings.

    The token's interval spans from the first fragment's start to the last
    fragment's end; its segment_index is the first fragment's.
    """
    bound: Dict[int, TokenMapping] = dict(state.bound)
    used: FrozenSet[int] = state.used
    timeline = _timeline(segment_mappings)

    for token in tokens:
        if token.index in bound:
            continue
        run = _compound_run(token.text, segment_mappings, timeline, used)
        if run is None:
            logger.debug("No complete timing match for token %r at %d", token.text, token.index)
            continue
        first = segment_mappings[run[0]]
        last = segment_mappings[run[-1]]
        bound[token.index] = TokenMapping(
            token_index=token.index,
            segment_index=first.segment_index,
            text=token.text,
            start=first.start,
            end=last.end,
        )
        used = used | frozenset(run)

    return AlignmentState(bound=bound, used=used)


def _punctuation_slot(
    prev: Optional[TokenMapping],
    nxt: Optional[TokenMapping],
    width: float,
) -> Tuple[float, float]:
    if prev is not None:
        start = prev.end
    elif nxt is not None:
        start = max(0.0, nxt.start - width)
    else:
        start = 0.0
    return start, start + width


def _estimate_slot(
    index: int,
    prev: Optional[TokenMapping],
    nxt: Optional[TokenMapping],
    per_token: float,
) -> Tuple[float, float]:
    if prev is not None and nxt is not None:
        gap = nxt.token_index - prev.token_index
        progress = (index - prev.token_index) / gap
        time_gap = max(0.0, nxt.start - prev.end)
        start = prev.end + progress * time_gap
        return start, start + time_gap / gap
    if prev is not None:
        start = prev.end + (index - prev.token_index - 1) * per_token
        return start, start + per_token
    # only a successor
    end = max(0.0, nxt.start - (nxt.token_index - index - 1) * per_token)
    return max(0.0, end - per_token), end


def _uniform(tokens: Sequence[Token], total_duration: float) -> Dict[int, TokenMapping]:
    count = len(tokens)
    slot = total_duration / count if count else 0.0
    return {
        token.index: TokenMapping(
            token_index=token.index,
            segment_index=ESTIMATED_SEGMENT_INDEX,
            text=token.text,
            start=position * slot,
            end=(position + 1) * slot,
        )
        for position, token in enumerate(tokens)
    }


def gap_fill_phase(
    tokens: Sequence[Token],
    state: AlignmentState,
    total_duration: float,
) -> Dict[int, TokenMapping]:
    """Estimate an interval for every token the evidence phases left unmapped.

    Returns:
        Mapping of every token index to its TokenMapping (evidenced ones
        unchanged, estimated ones with segment_index == -1).
    """
    evidenced = state.bound
    if not tokens:
        return {}
    if not evidenced:
        logger.warning(
            "No timing evidence for %d tokens; distributing %.0f ms uniformly",
            len(tokens), total_duration,
        )
        return _uniform(tokens, max(0.0, total_duration))

    indexes = sorted(evidenced)
    per_token = min(config.EXTRAPOLATION_CAP_MS, max(0.0, total_duration) / len(tokens))
    width = config.PUNCTUATION_DURATION_MS

    filled: Dict[int, TokenMapping] = dict(evidenced)
    for token in tokens:
        if token.index in evidenced:
            continue
        k = bisect_left(indexes, token.index)
        prev = evidenced[indexes[k - 1]] if k > 0 else None
        nxt = evidenced[indexes[k]] if k < len(indexes) else None

        if is_punctuation(token.text):
            start, end = _punctuation_slot(prev, nxt, width)
        else:
            start, end = _estimate_slot(token.index, prev, nxt, per_token)

        filled[token.index] = TokenMapping(
            token_index=token.index,
            segment_index=ESTIMATED_SEGMENT_INDEX,
            text=token.text,
            start=start,
            end=end,
        )
    return filled


def check_totality(tokens: Sequence[Token], mappings: Sequence[TokenMapping]) -> None:
    """Raise AlignmentError unless every token index appears exactly once."""
    counts = Counter(m.token_index for m in mappings)
    duplicates = sorted(i for i, c in counts.items() if c > 1)
    expected = {token.index for token in tokens}
    missing = sorted(expected - set(counts))
    unexpected = sorted(set(counts) - expected)
    if duplicates or missing or unexpected:
        raise AlignmentError(
            "token mappings violate totality: missing={} duplicated={} unexpected={}".format(
                missing, duplicates, unexpected,
            )
        )


def align(
    tokens: Sequence[Token],
    segments: Sequence[Segment],
    segment_mappings: Sequence[SegmentMapping],
    total_duration: Optional[float] = None,
) -> List[TokenMapping]:
    """Align display tokens with mapped boundary events.

    Args:
        tokens: Tokenizer output.
        segments: TTS segments the mappings were bound to.
        segment_mappings: Segment mapper output, in event order.
        total_duration: Audio length in ms; defaults to the latest mapping end.

    Returns:
        One TokenMapping per token, sorted by start.

    Raises:
        AlignmentError: Only if the result violates totality (a bug).
    """
    if total_duration is None:
        total_duration = total_duration_ms(segment_mappings)

    state = AlignmentState()
    state = exact_match_phase(tokens, segment_mappings, state)
    exact_count = len(state.bound)
    state = compound_phase(tokens, segment_mappings, state)
    filled = gap_fill_phase(tokens, state, total_duration)

    result = sorted((filled[token.index] for token in tokens), key=lambda m: m.start)
    check_totality(tokens, result)

    logger.info(
        "Aligned %d tokens against %d segments / %d mappings: "
        "%d exact, %d compound, %d estimated",
        len(tokens), len(segments), len(segment_mappings),
        exact_count, len(state.bound) - exact_count, len(result) - len(state.bound),
    )
    return result
