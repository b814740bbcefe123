"""hanzi_sync: token-to-audio timing alignment for a Chinese reader.

WHY: A language-learning reader highlights vocabulary words while a TTS
voice reads the article aloud. The words the reader shows (greedy
longest-match over the learner's vocabulary) and the word boundaries the
TTS engine reports are produced independently and rarely agree, so
highlighting needs an alignment engine in between.

HOW: Five-stage pipeline: tokenize (vocabulary), segment (jieba), normalize
boundary events, map events onto segments, align tokens with mapped
events, plus a binary-search locator for playback time. Each stage is a
pure function and independently testable.

RULES:
- The tokenizer is the single implementation shared by rendering and alignment
- Every token receives exactly one time interval
- Missing timing evidence degrades to estimates, never to an error
"""

__version__ = "0.1.0"
