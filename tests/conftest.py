"""Shared test fixtures for the hanzi_sync test suite.

WHY: Several test modules need the same worked example: one sentence,
the vocabulary it is rendered with, and the boundary events the TTS engine
returned for it. Centralizing it here keeps every stage tested against the
same hand-verified numbers.

HOW: Pytest fixtures provide the sample text, vocabulary, boundary events
(milliseconds and engine ticks), and a deterministic cut function that
stands in for jieba so segment offsets are predictable.

RULES:
- SAMPLE_TEXT tokenizes to: 你好 ， 欢迎 来到 北京 。
- The engine splits 欢迎 into 欢 + 迎 (compound accumulation case)
- Expected token intervals are listed in EXPECTED_INTERVALS
"""

from typing import Any, Dict, List

import pytest

from hanzi_sync.core.ir import VocabularyEntry

SAMPLE_TEXT = "你好，欢迎来到北京。"

SAMPLE_VOCABULARY: List[VocabularyEntry] = [
    VocabularyEntry(simplified="你好", pinyin="nǐ hǎo", english="hello", hsk_level=1, id=1),
    VocabularyEntry(simplified="欢迎", pinyin="huān yíng", english="welcome", hsk_level=3, id=2),
    VocabularyEntry(simplified="来到", pinyin="lái dào", english="to arrive", hsk_level=3, id=3),
    VocabularyEntry(simplified="北京", pinyin="Běi jīng", english="Beijing", hsk_level=1, id=4),
    VocabularyEntry(simplified="北", pinyin="běi", english="north", hsk_level=2, id=5),
]

SAMPLE_SEGMENT_WORDS = ["你好", "，", "欢迎", "来到", "北京", "。"]

SAMPLE_EVENTS_MS: List[Dict[str, Any]] = [
    {"word": "你好", "start": 0,    "duration": 310},
    {"word": "欢",   "start": 400,  "duration": 200},
    {"word": "迎",   "start": 600,  "duration": 180},
    {"word": "来到", "start": 780,  "duration": 300},
    {"word": "北京", "start": 1080, "duration": 350},
]

# (token text, start ms, end ms, estimated?)
EXPECTED_INTERVALS = [
    ("你好", 0.0,    310.0,  False),
    ("，",   310.0,  360.0,  True),
    ("欢迎", 400.0,  780.0,  False),
    ("来到", 780.0,  1080.0, False),
    ("北京", 1080.0, 1430.0, False),
    ("。",   1430.0, 1480.0, True),
]


def sample_cut(text: str) -> List[str]:
    """Deterministic stand-in for jieba on SAMPLE_TEXT."""
    assert text == SAMPLE_TEXT
    return list(SAMPLE_SEGMENT_WORDS)


@pytest.fixture
def sample_text():
    return SAMPLE_TEXT


@pytest.fixture
def sample_vocabulary():
    return list(SAMPLE_VOCABULARY)


@pytest.fixture
def sample_events_ms():
    return [dict(e) for e in SAMPLE_EVENTS_MS]


@pytest.fixture
def sample_events_ticks():
    """The sample events as the engine reports them (100 ns ticks)."""
    return [
        {
            "text": e["word"],
            "audioOffset": e["start"] * 10_000,
            "duration": e["duration"] * 10_000,
        }
        for e in SAMPLE_EVENTS_MS
    ]


@pytest.fixture
def cut():
    return sample_cut


@pytest.fixture
def expected_intervals():
    return list(EXPECTED_INTERVALS)
