"""Unit tests for the TTS segmenter and text preprocessing.

WHY: Segment offsets tie boundary events back to the source text. If the
offsets drift (for example by segmenting the preprocessed text instead of
the original), every later stage works on the wrong characters.

HOW: A fake cut function makes offsets deterministic; one test runs the
real jieba segmenter and checks only properties that hold for any
segmentation.
"""

from hanzi_sync.core.tts_segmenter import preprocess_for_tts, segment_for_tts


class TestSegmentForTTS:

    def test_sample_offsets(self, sample_text, cut):
        segments = segment_for_tts(sample_text, cut=cut)
        assert [(s.text, s.start, s.end, s.index) for s in segments] == [
            ("你好", 0, 2, 0),
            ("，", 2, 3, 1),
            ("欢迎", 3, 5, 2),
            ("来到", 5, 7, 3),
            ("北京", 7, 9, 4),
            ("。", 9, 10, 5),
        ]

    def test_whitespace_pieces_are_skipped(self):
        text = "你好 世界"
        segments = segment_for_tts(text, cut=lambda t: ["你好", " ", "世界"])
        assert [(s.text, s.start, s.index) for s in segments] == [("你好", 0, 0), ("世界", 3, 1)]

    def test_empty_pieces_are_skipped(self):
        segments = segment_for_tts("好", cut=lambda t: ["", "好"])
        assert [(s.text, s.start) for s in segments] == [("好", 0)]

    def test_repeated_word_located_after_previous(self):
        text = "好好学习，好"
        segments = segment_for_tts(text, cut=lambda t: ["好", "好", "学习", "，", "好"])
        assert [s.start for s in segments] == [0, 1, 2, 4, 5]

    def test_piece_not_in_text_is_skipped(self):
        segments = segment_for_tts("你好", cut=lambda t: ["您", "你好"])
        assert [(s.text, s.index) for s in segments] == [("你好", 0)]

    def test_empty_text(self):
        assert segment_for_tts("", cut=lambda t: ["x"]) == []

    def test_offsets_refer_to_original_text(self):
        text = "你好，世界。再见！"
        segments = segment_for_tts(text, cut=lambda t: ["你好", "，", "世界", "。", "再见", "！"])
        for seg in segments:
            assert text[seg.start:seg.end] == seg.text
        # Preprocessing adds spaces, but never shifts segment offsets
        assert len(preprocess_for_tts(text)) > len(text)
        assert segments[-1].end == len(text)

    def test_jieba_default_segmentation(self):
        text = "我们明天去北京大学参观。"
        segments = segment_for_tts(text)
        assert segments
        assert "".join(s.text for s in segments) == text
        for seg in segments:
            assert text[seg.start:seg.end] == seg.text
        assert [s.index for s in segments] == list(range(len(segments)))


class TestPreprocessForTTS:

    def test_space_after_major_marks(self):
        assert preprocess_for_tts("好。好！好？好；好") == "好。 好！ 好？ 好； 好"

    def test_space_after_minor_marks(self):
        assert preprocess_for_tts("一，二、三：四") == "一， 二、 三： 四"

    def test_collapses_whitespace_and_trims(self):
        assert preprocess_for_tts("  你好，  世界。\n\n再见  ") == "你好， 世界。 再见"

    def test_text_without_marks_unchanged(self):
        assert preprocess_for_tts("你好世界") == "你好世界"
