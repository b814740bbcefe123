"""Command-line interface for the token-to-audio alignment engine.

WHY: Alignment problems are easiest to debug on real data outside the web
app: take an article, the vocabulary it was rendered with, and the
boundary events the TTS engine returned, and look at the token intervals.
The CLI wires the whole pipeline behind a single command.

HOW: Uses argparse to accept a text file, a boundary-event file (or a
cached entry), an optional vocabulary file, and output options. Runs
build_alignment() (or build_alignment_from_cache()) and writes the JSON
result to stdout or --output. Status messages go to stderr.

RULES:
- Positional argument: UTF-8 text file
- Exactly one of --boundaries or --cache-entry is required
- --units selects tick (default) or millisecond boundary events
- --at MS reports the active token at that playback time on stderr
- --save-cache-entry writes the timing side of the result as a cache entry
- Errors reading or validating input → message on stderr, exit code 1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import jsonschema

from hanzi_sync import config
from hanzi_sync.cache import CacheEntry
from hanzi_sync.core.tokenizer import Vocabulary
from hanzi_sync.pipeline import AlignmentResult, build_alignment, build_alignment_from_cache


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def _read_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _run(args: argparse.Namespace) -> AlignmentResult:
    text = Path(args.text_file).read_text(encoding="utf-8")
    vocabulary = Vocabulary.from_json_file(args.vocabulary) if args.vocabulary else Vocabulary()
    _status("Loaded {} chars of text and {} vocabulary words".format(len(text), len(vocabulary)))

    if args.cache_entry:
        entry = CacheEntry.from_dict(_read_json(args.cache_entry))
        return build_alignment_from_cache(text, vocabulary, entry)

    raw = _read_json(args.boundaries)
    if not isinstance(raw, list):
        raise ValueError("{} must contain a JSON array of boundary events".format(args.boundaries))
    return build_alignment(
        text,
        vocabulary,
        raw,
        ticks_per_ms=args.ticks_per_ms,
        units=args.units,
        audio_duration_ms=args.audio_duration,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="hanzi_sync",
        description="Align vocabulary tokens of a Chinese text with TTS "
                    "word-boundary timings and print the token intervals as JSON.",
    )

    parser.add_argument(
        "text_file",
        help="Path to the UTF-8 text that was synthesized.",
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--boundaries",
        default=None,
        help="JSON array of TTS word-boundary events.",
    )
    source.add_argument(
        "--cache-entry",
        default=None,
        help="Cached synthesis entry to re-align instead of boundary events.",
    )

    parser.add_argument(
        "--vocabulary",
        default=None,
        help="JSON array of vocabulary entries (simplified, pinyin, english, hskLevel).",
    )

    parser.add_argument(
        "--units",
        choices=("ticks", "ms"),
        default="ticks",
        help="Time unit of the boundary events (default: %(default)s).",
    )

    parser.add_argument(
        "--ticks-per-ms",
        type=float,
        default=None,
        help="Engine tick resolution (default: {:g}).".format(config.TTS_TICKS_PER_MS),
    )

    parser.add_argument(
        "--audio-duration",
        type=float,
        default=0.0,
        help="Known audio length in ms, used by the fallback distribution.",
    )

    parser.add_argument(
        "--output",
        default=None,
        help="Write the JSON result to this file instead of stdout.",
    )

    parser.add_argument(
        "--save-cache-entry",
        default=None,
        help="Also write the timing data as a TTS cache entry to this file.",
    )

    parser.add_argument(
        "--voice",
        default=config.DEFAULT_VOICE,
        help="Voice recorded in the saved cache entry (default: %(default)s).",
    )

    parser.add_argument(
        "--rate",
        default=config.DEFAULT_RATE,
        help="Speech rate recorded in the saved cache entry (default: %(default)s).",
    )

    parser.add_argument(
        "--at",
        type=float,
        default=None,
        help="Report the token active at this playback time (ms).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log alignment details to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = _run(args)
    except (OSError, ValueError, jsonschema.ValidationError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    content = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(content + "\n", encoding="utf-8")
        _status("Saved: {}".format(args.output))
    else:
        print(content)

    if args.save_cache_entry:
        entry = result.to_cache_entry(voice=args.voice, rate=args.rate)
        Path(args.save_cache_entry).write_text(entry.dumps(), encoding="utf-8")
        _status("Saved cache entry: {}".format(args.save_cache_entry))

    estimated = sum(1 for m in result.token_mappings if m.estimated)
    _status("{} tokens, {} estimated, {:.0f} ms total".format(
        len(result.tokens), estimated, result.total_duration,
    ))

    if args.at is not None:
        index = result.locator().locate(args.at)
        if index == -1:
            _status("No token active at {:g} ms".format(args.at))
        else:
            _status("Token {} ({!r}) active at {:g} ms".format(
                index, result.tokens[index].text, args.at,
            ))


if __name__ == "__main__":
    main()
