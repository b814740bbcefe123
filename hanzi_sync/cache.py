"""Content-addressed TTS cache keys and cache entry serialization.

WHY: Synthesizing speech is slow and billed per character, so previously
synthesized articles are cached by (text, vocabulary, voice, rate). The
cache store itself lives elsewhere; this module owns the key and the
shape of an entry, so timing data read back from storage is exactly what
the aligner expects.

HOW: cache_key() hashes the request fields with SHA-256. CacheEntry holds
the timing side of a synthesis (boundary events, segments, segment
mappings); to_dict()/dumps() produce the stored JSON and from_dict()
validates a stored blob with jsonschema before rebuilding the records.

RULES:
- Key material: "{text}{vocabulary JSON}|{voice}|{rate}" (compact JSON, [] when absent)
- The vocabulary is part of the key because token mappings depend on it
- from_dict() and dumps() validate against schemas/tts_cache_entry.schema.json
  and raise jsonschema.ValidationError on a malformed entry
- Audio bytes are opaque and are not part of the entry
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import jsonschema

from hanzi_sync.core.boundaries import normalize_boundary_ms
from hanzi_sync.core.ir import BoundaryEvent, Segment, SegmentMapping, VocabularyEntry

_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "tts_cache_entry.schema.json"


def _load_schema() -> Dict[str, Any]:
    """Load the cache entry JSON schema from disk.

    Cached at module level after first call to avoid repeated I/O.
    """
    with open(_SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        _CACHED_SCHEMA = _load_schema()
    return _CACHED_SCHEMA


def cache_key(
    text: str,
    voice: str,
    rate: str,
    words: Optional[Iterable[Union[VocabularyEntry, Dict[str, Any]]]] = None,
) -> str:
    """Return the hex SHA-256 cache key for one synthesis request."""
    word_dicts = [
        w.to_dict() if isinstance(w, VocabularyEntry) else w
        for w in (words or [])
    ]
    words_json = json.dumps(word_dicts, ensure_ascii=False, separators=(",", ":"))
    material = "{}{}|{}|{}".format(text, words_json, voice, rate)
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """Timing data of one cached synthesis."""

    text: str
    voice: str
    rate: str
    total_duration: float
    timings: List[BoundaryEvent] = field(default_factory=list)
    segments: List[Segment] = field(default_factory=list)
    mappings: List[SegmentMapping] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "voice": self.voice,
            "rate": self.rate,
            "totalDuration": self.total_duration,
            "timings": [t.to_dict() for t in self.timings],
            "segments": [s.to_dict() for s in self.segments],
            "mappings": [m.to_dict() for m in self.mappings],
        }

    def dumps(self) -> str:
        """Serialize to JSON after validating against the entry schema."""
        data = self.to_dict()
        jsonschema.validate(instance=data, schema=_get_schema())
        return json.dumps(data, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Rebuild an entry from stored JSON.

        Raises:
            jsonschema.ValidationError: If the blob does not match the schema.
        """
        jsonschema.validate(instance=data, schema=_get_schema())
        return cls(
            text=data["text"],
            voice=data["voice"],
            rate=data["rate"],
            total_duration=float(data["totalDuration"]),
            timings=normalize_boundary_ms(data["timings"]),
            segments=[Segment.from_dict(s) for s in data["segments"]],
            mappings=[SegmentMapping.from_dict(m) for m in data["mappings"]],
        )

    @classmethod
    def loads(cls, raw: Union[str, bytes]) -> "CacheEntry":
        return cls.from_dict(json.loads(raw))
