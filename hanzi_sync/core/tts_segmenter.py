"""Coarse word segmentation of the text submitted to the TTS engine.

WHY: The TTS engine reports word boundaries in its own granularity. A
general-purpose segmenter (jieba) approximates that granularity much
better than the learner's vocabulary does, so boundary events are first
bound to jieba segments and only then to display tokens.

HOW: segment_for_tts() runs the cut function (jieba accurate mode with HMM
by default) and locates every yielded word in the original text with a
forward-moving find(), producing Segments with character offsets.
preprocess_for_tts() spaces out pause punctuation in the text that is
actually synthesized.

RULES:
- Segments always carry offsets into the ORIGINAL text, never the
  preprocessed text
- Whitespace-only or empty pieces advance the search position and are skipped
- A piece not found at or after the search position is skipped
- Segment indexes are sequential from 0
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional

import jieba

from hanzi_sync.core.charclass import MAJOR_PAUSE_MARKS, MINOR_PAUSE_MARKS
from hanzi_sync.core.ir import Segment

CutFunction = Callable[[str], Iterable[str]]

_PAUSE_RE = re.compile(
    "([{}])".format(re.escape("".join(sorted(MAJOR_PAUSE_MARKS | MINOR_PAUSE_MARKS))))
)
_WHITESPACE_RE = re.compile(r"\s+")


def jieba_cut(text: str) -> Iterable[str]:
    """Accurate-mode jieba segmentation with HMM for unknown words."""
    return jieba.cut(text, cut_all=False, HMM=True)


def segment_for_tts(text: str, cut: Optional[CutFunction] = None) -> List[Segment]:
    """Segment text into located words for TTS boundary mapping.

    Args:
        text: The original (not preprocessed) source text.
        cut: Word segmenter returning pieces of ``text`` in order.
             Defaults to jieba.

    Returns:
        Segments in source order with offsets into ``text``.
    """
    if not text:
        return []
    cut = cut or jieba_cut

    segments: List[Segment] = []
    position = 0

    for piece in cut(text):
        if not piece or not piece.strip():
            position += len(piece)
            continue

        start = text.find(piece, position)
        if start == -1:
            continue

        end = start + len(piece)
        segments.append(Segment(text=piece, start=start, end=end, index=len(segments)))
        position = end

    return segments


def preprocess_for_tts(text: str) -> str:
    """Insert a space after pause punctuation and collapse whitespace.

    The engine places word boundaries more reliably when clauses are
    separated. The result is for synthesis only; offsets reported back are
    reconciled against the original text by segmenting the original.
    """
    spaced = _PAUSE_RE.sub(r"\1 ", text)
    return _WHITESPACE_RE.sub(" ", spaced).strip()
