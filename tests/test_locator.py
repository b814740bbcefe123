"""Unit tests for the playback locator.

WHY: The locator runs on every playback tick; an off-by-one at interval
edges makes the highlight flicker between neighbouring words.
"""

import random

import pytest

from hanzi_sync.core.ir import SegmentMapping, TokenMapping
from hanzi_sync.core.locator import PlaybackLocator, locate, segment_at_time


def _tm(index, start, end):
    return TokenMapping(token_index=index, segment_index=0, text="x", start=start, end=end)


SENTENCE = [_tm(0, 0, 310), _tm(1, 310, 360), _tm(2, 400, 780), _tm(3, 780, 1080)]


def _linear(mappings, t):
    for m in mappings:
        if m.start <= t <= m.end:
            return m.token_index
    return -1


class TestLocate:

    @pytest.mark.parametrize("t, expected", [
        (0, 0),
        (150, 0),
        (335, 1),
        (500, 2),
        (1000, 3),
        (1080, 3),
    ])
    def test_inside(self, t, expected):
        assert locate(SENTENCE, t) == expected

    def test_shared_edge_goes_to_earlier_token(self):
        assert locate(SENTENCE, 310) == 0
        assert locate(SENTENCE, 780) == 2

    @pytest.mark.parametrize("t", [-1, 370, 1080.5, 5000])
    def test_outside(self, t):
        assert locate(SENTENCE, t) == -1

    def test_empty(self):
        assert locate([], 0) == -1
        assert PlaybackLocator([]).locate(0) == -1

    def test_binary_search_used_for_large_inputs(self, monkeypatch):
        monkeypatch.setattr("hanzi_sync.config.LOCATOR_LINEAR_SCAN_MAX", 0)
        assert locate(SENTENCE, 500) == 2
        assert locate(SENTENCE, 370) == -1

    def test_index_reused_across_ticks(self, monkeypatch):
        from hanzi_sync.core import locator as locator_module

        builds = []

        class CountingLocator(PlaybackLocator):
            def __init__(self, mappings):
                builds.append(len(mappings))
                super().__init__(mappings)

        monkeypatch.setattr(locator_module, "PlaybackLocator", CountingLocator)
        monkeypatch.setattr(locator_module, "_CACHED_LOCATOR", None)

        article = [_tm(i, i * 100, i * 100 + 90) for i in range(1000)]
        for tick in range(1000):
            assert locate(article, tick * 100 + 50) == tick
        assert builds == [1000]

        # A different result gets its own index
        other = list(article[:500])
        assert locate(other, 60_000) == -1
        assert builds == [1000, 500]


class TestPlaybackLocator:

    def test_overlap_first_containing_wins(self):
        locator = PlaybackLocator([_tm(0, 0, 1000), _tm(1, 100, 200), _tm(2, 500, 600)])
        assert locator.locate(150) == 0
        assert locator.locate(999) == 0

    def test_long_interval_behind_short_ones(self):
        locator = PlaybackLocator([_tm(0, 0, 50), _tm(1, 60, 1000), _tm(2, 100, 150)])
        assert locator.locate(120) == 1
        assert locator.locate(55) == -1

    def test_unsorted_input_is_sorted(self):
        locator = PlaybackLocator([_tm(1, 300, 400), _tm(0, 0, 100)])
        assert locator.locate(50) == 0
        assert len(locator) == 2

    def test_agrees_with_linear_scan(self):
        rng = random.Random(7)
        for _ in range(200):
            mappings = []
            for i in range(rng.randint(0, 40)):
                start = rng.uniform(0, 5000)
                mappings.append(_tm(i, start, start + rng.uniform(0, 300)))
            mappings.sort(key=lambda m: m.start)
            locator = PlaybackLocator(mappings)
            for _ in range(25):
                t = rng.uniform(-100, 5500)
                assert locator.locate(t) == _linear(mappings, t)


class TestSegmentAtTime:

    def test_seconds_input(self):
        mappings = [
            SegmentMapping(segment_index=0, start=0, duration=300, word="你好"),
            SegmentMapping(segment_index=2, start=400, duration=200, word="欢"),
        ]
        assert segment_at_time(mappings, 0.45).segment_index == 2
        assert segment_at_time(mappings, 0.35) is None
