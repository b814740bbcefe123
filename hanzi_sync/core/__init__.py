"""Core tokenization and alignment modules.

WHY: The core package is the stable heart of the engine: the IR
dataclasses, the two segmenters, and the alignment stages. Pipeline,
cache, and CLI code all build on these and must not leak into them.

HOW: ir.py defines the records, charclass.py the character predicates,
tokenizer.py and tts_segmenter.py the two segmentations, boundaries.py
and segment_mapper.py the event side, aligner.py and locator.py the
token timing.

RULES:
- Core modules are pure: no I/O beyond loading a vocabulary file on request
- IR dataclasses are the contract; change with care
"""
