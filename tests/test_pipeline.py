"""End-to-end tests for the alignment pipeline.

WHY: Each stage is unit-tested on its own; these tests check that the
stages are wired in the right order with the right inputs, including the
real jieba segmenter, tick conversion, the malformed-input fallback, and
re-alignment from a cached entry.
"""

import pytest

from hanzi_sync.cache import CacheEntry
from hanzi_sync.core.ir import VocabularyEntry
from hanzi_sync.pipeline import build_alignment, build_alignment_from_cache


class TestBuildAlignment:

    def test_hello_compound_scenario(self):
        vocabulary = [VocabularyEntry(simplified="你好", id=1)]
        raw = [
            {"word": "你", "start": 0, "duration": 150},
            {"word": "好", "start": 150, "duration": 160},
        ]
        result = build_alignment("你好", vocabulary, raw, units="ms")

        assert [(t.text, t.index) for t in result.tokens] == [("你好", 0)]
        assert result.tokens[0].word.id == 1
        [mapping] = result.token_mappings
        assert mapping.token_index == 0
        assert mapping.start == pytest.approx(0)
        assert mapping.end == pytest.approx(310)
        assert not mapping.estimated
        assert result.total_duration == pytest.approx(310)

    def test_sample_from_engine_ticks(self, sample_text, sample_vocabulary, cut,
                                      sample_events_ticks, expected_intervals):
        result = build_alignment(sample_text, sample_vocabulary, sample_events_ticks, cut=cut)
        assert [(m.text, m.start, m.end) for m in result.token_mappings] == [
            (text, pytest.approx(start), pytest.approx(end))
            for text, start, end, _ in expected_intervals
        ]
        assert result.tts_text == "你好， 欢迎来到北京。"
        assert len(result.mappings) == 5

    def test_malformed_boundaries_fall_back_to_uniform(self, caplog):
        raw = [{"word": "你", "start": "soon", "duration": 100}]
        result = build_alignment("你好", None, raw, units="ms", audio_duration_ms=1000)
        assert result.timings == []
        assert [(m.start, m.end) for m in result.token_mappings] == [(0, 500), (500, 1000)]
        assert "malformed boundary events" in caplog.text

    def test_no_boundaries(self):
        result = build_alignment("你好。", None, [], cut=lambda t: ["你", "好", "。"])
        assert len(result.token_mappings) == len(result.tokens) == 3
        assert all(m.start == m.end == 0 for m in result.token_mappings)

    def test_unknown_units_rejected(self):
        with pytest.raises(ValueError):
            build_alignment("你好", None, [], units="seconds")

    def test_bad_tick_resolution_is_not_swallowed(self, sample_events_ticks, caplog):
        with pytest.raises(ValueError, match="ticks_per_ms"):
            build_alignment("你好", None, sample_events_ticks, ticks_per_ms=0)
        assert "malformed boundary events" not in caplog.text

    def test_punctuation_joined_event_is_evidence(self):
        vocabulary = [VocabularyEntry(simplified="你好", id=1), VocabularyEntry(simplified="世界", id=2)]
        raw = [
            {"word": "你好，", "start": 0, "duration": 300},
            {"word": "世界", "start": 300, "duration": 300},
        ]
        result = build_alignment(
            "你好，世界", vocabulary, raw, units="ms",
            cut=lambda t: ["你好", "，", "世界"],
        )
        first = result.token_mappings[0]
        assert (first.text, first.start, first.end) == ("你好", 0, 300)
        assert not first.estimated
        assert [m.text for m in result.token_mappings] == ["你好", "，", "世界"]

    def test_to_dict_shape(self, sample_text, sample_vocabulary, cut, sample_events_ms):
        data = build_alignment(sample_text, sample_vocabulary, sample_events_ms, units="ms", cut=cut).to_dict()
        assert set(data) == {
            "ttsText", "timings", "totalDuration", "segments",
            "mappings", "tokens", "tokenMappings",
        }
        assert data["tokenMappings"][0] == {
            "tokenIndex": 0, "segmentIndex": 0, "text": "你好", "start": 0.0, "end": 310.0,
        }

    def test_locator(self, sample_text, sample_vocabulary, cut, sample_events_ms):
        result = build_alignment(sample_text, sample_vocabulary, sample_events_ms, units="ms", cut=cut)
        locator = result.locator()
        assert locator.locate(500) == 2
        assert locator.locate(1450) == 5
        assert locator.locate(390) == -1


class TestBuildAlignmentFromCache:

    def test_cached_entry_matches_fresh_result(self, sample_text, sample_vocabulary, cut, sample_events_ms):
        fresh = build_alignment(sample_text, sample_vocabulary, sample_events_ms, units="ms", cut=cut)
        entry = CacheEntry.loads(fresh.to_cache_entry(voice="v", rate="1.0").dumps())
        cached = build_alignment_from_cache(sample_text, sample_vocabulary, entry)
        assert [m.to_dict() for m in cached.token_mappings] == [m.to_dict() for m in fresh.token_mappings]
        assert cached.total_duration == fresh.total_duration

    def test_new_vocabulary_is_applied(self, sample_text, sample_vocabulary, cut, sample_events_ms):
        fresh = build_alignment(sample_text, sample_vocabulary, sample_events_ms, units="ms", cut=cut)
        cached = build_alignment_from_cache(sample_text, [], fresh.to_cache_entry())
        # Without vocabulary every ideograph is its own token
        assert [t.text for t in cached.tokens][:3] == ["你", "好", "，"]
        assert len(cached.token_mappings) == len(cached.tokens)
