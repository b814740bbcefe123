"""Character-class predicates shared by the tokenizer, segmenter, and aligner.

WHY: Whether a character is a Chinese ideograph decides how the tokenizer
scans, and whether a token is punctuation decides how the aligner fills
its timing gap. Both were ad hoc regular expressions scattered through the
code; as named predicates over enumerated tables they can be tested on
their own.

HOW: HAN_RANGES and PUNCTUATION_CHARS are the tables. is_han() checks a
single character against the ranges; is_punctuation() checks that every
character of a (stripped) token is punctuation or whitespace.

RULES:
- HAN_RANGES covers the CJK Unified Ideographs block U+4E00–U+9FFF
- Full-width CJK marks and their ASCII counterparts are punctuation
- Whitespace-only text counts as punctuation (it is never spoken)
- The empty string is not punctuation
"""

from __future__ import annotations

from typing import Tuple

HAN_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x4E00, 0x9FFF),  # CJK Unified Ideographs
)

CJK_PUNCTUATION = "，。！？；：“”‘’（）【】、"
ASCII_PUNCTUATION = ".,!?;:\"'()[]"

PUNCTUATION_CHARS = frozenset(CJK_PUNCTUATION + ASCII_PUNCTUATION)

# Marks after which preprocess_for_tts() inserts a pause-friendly space.
MAJOR_PAUSE_MARKS = frozenset("。！？；")
MINOR_PAUSE_MARKS = frozenset("，、：")


def is_han(ch: str) -> bool:
    """Return True if ch is a single CJK ideograph."""
    if len(ch) != 1:
        return False
    code = ord(ch)
    for low, high in HAN_RANGES:
        if low <= code <= high:
            return True
    return False


def is_punctuation(text: str) -> bool:
    """Return True if text consists only of punctuation and whitespace.

    RULES:
    - Leading/trailing whitespace is ignored
    - Whitespace-only text is punctuation; empty text is not
    """
    if not text:
        return False
    stripped = text.strip()
    if not stripped:
        return True
    return all(ch in PUNCTUATION_CHARS or ch.isspace() for ch in stripped)
