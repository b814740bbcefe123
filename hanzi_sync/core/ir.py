"""Intermediate representation dataclasses for tokens, segments, and timings.

WHY: The alignment engine joins two independently produced segmentations
of the same text: vocabulary-driven display tokens and the TTS engine's
word boundaries. Every stage needs the same small set of well-typed
records, and the UI and the TTS cache need them in one stable JSON shape.

HOW: Six frozen dataclasses:
  VocabularyEntry: read-only dictionary data borrowed from the lookup service
  Token:          one display/highlight unit from the tokenizer
  Segment:        one coarse word from the TTS segmenter (char offsets)
  BoundaryEvent:  one normalized word-boundary event from the TTS engine
  SegmentMapping: one boundary event bound to one Segment
  TokenMapping:   the final time interval of one Token

RULES:
- All records are immutable; stages build new lists, never edit in place
- All times are float milliseconds
- to_dict() emits the camelCase JSON shape consumed by the UI and the cache
- TokenMapping.segment_index == -1 marks an estimated (gap-filled) interval
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

ESTIMATED_SEGMENT_INDEX = -1
"""segment_index value of a TokenMapping with no direct timing evidence."""


@dataclass(frozen=True)
class VocabularyEntry:
    """A dictionary word the tokenizer can match.

    RULES:
    - simplified is the lookup key (exact string match)
    - pinyin, english, hsk_level are carried through untouched
    - id is the storage identifier when the entry came from the database
    """

    simplified: str
    pinyin: Optional[str] = None
    english: Optional[str] = None
    hsk_level: Optional[int] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "simplified": self.simplified,
            "pinyin": self.pinyin,
            "english": self.english,
            "hskLevel": self.hsk_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabularyEntry":
        """Build an entry from either camelCase or snake_case JSON.

        Raises:
            ValueError: If data is not an object with a string "simplified".
        """
        if not isinstance(data, dict) or not isinstance(data.get("simplified"), str):
            raise ValueError("vocabulary entry needs a string 'simplified': {!r}".format(data))
        hsk_level = data.get("hskLevel", data.get("hsk_level"))
        return cls(
            simplified=data["simplified"],
            pinyin=data.get("pinyin"),
            english=data.get("english"),
            hsk_level=int(hsk_level) if hsk_level is not None else None,
            id=data.get("id"),
        )


@dataclass(frozen=True)
class Token:
    """One display token produced by the vocabulary tokenizer.

    RULES:
    - text is never empty
    - word is the matched VocabularyEntry, or None for literal runs and
      unmatched single ideographs
    - index is the position in the token list (0, 1, 2, ...)
    """

    text: str
    index: int
    word: Optional[VocabularyEntry] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text, "index": self.index}
        if self.word is not None:
            data["word"] = self.word.to_dict()
        return data


@dataclass(frozen=True)
class Segment:
    """A coarse word sent to the TTS engine, located in the source text.

    RULES:
    - start/end are character offsets into the ORIGINAL text (end exclusive)
    - text == source[start:end]
    - index numbering is independent of Token.index
    """

    text: str
    start: int
    end: int
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        return cls(
            text=data["text"],
            start=int(data["start"]),
            end=int(data["end"]),
            index=int(data["index"]),
        )


@dataclass(frozen=True)
class BoundaryEvent:
    """A word boundary reported by the TTS engine, in milliseconds."""

    word: str
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "start": self.start, "duration": self.duration}


@dataclass(frozen=True)
class SegmentMapping:
    """One boundary event bound to one Segment.

    RULES:
    - segment_index refers to Segment.index
    - word is the boundary event's word (trimmed), not the segment text,
      so fine-grained events keep their own text for compound matching
    """

    segment_index: int
    start: float
    duration: float
    word: str

    @property
    def end(self) -> float:
        return self.start + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segmentIndex": self.segment_index,
            "start": self.start,
            "duration": self.duration,
            "word": self.word,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentMapping":
        return cls(
            segment_index=int(data["segmentIndex"]),
            start=float(data["start"]),
            duration=float(data["duration"]),
            word=data["word"],
        )


@dataclass(frozen=True)
class TokenMapping:
    """The time interval during which one Token is highlighted.

    RULES:
    - Exactly one TokenMapping per Token (totality)
    - start <= end
    - segment_index == -1 when the interval was estimated by gap filling
    """

    token_index: int
    segment_index: int
    text: str
    start: float
    end: float

    @property
    def estimated(self) -> bool:
        return self.segment_index == ESTIMATED_SEGMENT_INDEX

    def contains(self, time_ms: float) -> bool:
        """True if time_ms lies in [start, end], inclusive on both ends."""
        return self.start <= time_ms <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenIndex": self.token_index,
            "segmentIndex": self.segment_index,
            "text": self.text,
            "start": self.start,
            "end": self.end,
        }
