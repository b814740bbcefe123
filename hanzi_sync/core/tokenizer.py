"""Vocabulary-driven greedy longest-match tokenizer.

WHY: The reader highlights whole vocabulary words ("北京", not "北" + "京"),
so the text must be split the same way for rendering and for timing
alignment. One shared pure function serves both paths; two copies would
drift apart.

HOW: Vocabulary builds an exact-match map and precomputes the longest
entry length once. tokenize() scans left to right: runs of non-ideographs
become one literal token; at an ideograph it tries the longest candidate
substring first and shortens it until a vocabulary key matches.

RULES:
- Non-ideograph runs (ASCII, digits, punctuation, spaces) → one token each
- Ideograph → longest vocabulary match from min(max_word_length, remaining)
  down to 1; the first hit wins
- No match at any length → single-character token with word=None
- Token indexes are sequential from 0
- Empty text → []
- Vocabulary files are validated against schemas/vocabulary.schema.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import jsonschema

from hanzi_sync.core.charclass import is_han
from hanzi_sync.core.ir import Token, VocabularyEntry

_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "vocabulary.schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


class Vocabulary:
    """Read-only exact-match lookup over vocabulary entries.

    RULES:
    - Keys are VocabularyEntry.simplified; a later duplicate replaces an earlier one
    - max_word_length is at least 1, even for an empty vocabulary
    """

    def __init__(self, entries: Iterable[VocabularyEntry] = ()) -> None:
        self._entries: Dict[str, VocabularyEntry] = {}
        max_len = 1
        for entry in entries:
            if not entry.simplified:
                continue
            self._entries[entry.simplified] = entry
            max_len = max(max_len, len(entry.simplified))
        self.max_word_length = max_len

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def lookup(self, text: str) -> Optional[VocabularyEntry]:
        return self._entries.get(text)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "Vocabulary":
        """Load a JSON array of vocabulary objects (camelCase or snake_case keys).

        Raises:
            jsonschema.ValidationError: If the file is not a list of entries
                with a string "simplified" key.
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        jsonschema.validate(instance=data, schema=_get_schema())
        return cls(VocabularyEntry.from_dict(item) for item in data)


def tokenize(
    text: str,
    vocabulary: Union[Vocabulary, Iterable[VocabularyEntry], None] = None,
) -> List[Token]:
    """Split text into display tokens using greedy longest-match lookup.

    Args:
        text: Raw source text.
        vocabulary: A Vocabulary, or any iterable of VocabularyEntry
                    (a Vocabulary is built from it once per call).

    Returns:
        Tokens in source order. Concatenating their texts yields ``text``.
    """
    if not text:
        return []
    if not isinstance(vocabulary, Vocabulary):
        vocabulary = Vocabulary(vocabulary or ())

    tokens: List[Token] = []
    length = len(text)
    i = 0

    while i < length:
        if not is_han(text[i]):
            j = i + 1
            while j < length and not is_han(text[j]):
                j += 1
            tokens.append(Token(text=text[i:j], index=len(tokens)))
            i = j
            continue

        matched: Optional[VocabularyEntry] = None
        matched_len = 1
        for size in range(min(vocabulary.max_word_length, length - i), 0, -1):
            entry = vocabulary.lookup(text[i:i + size])
            if entry is not None:
                matched = entry
                matched_len = size
                break

        tokens.append(Token(
            text=text[i:i + matched_len],
            index=len(tokens),
            word=matched,
        ))
        i += matched_len

    return tokens
