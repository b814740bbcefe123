"""Configuration constants, timing defaults, and .env loading.

WHY: Centralizes the tunable numbers of the alignment engine so they are
easy to find, update, and override. The tick resolution of the TTS engine,
the width of punctuation highlights, and the extrapolation cap are plain
data, not buried in logic, so both humans and coding agents can modify
them confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values read through env_int()/env_float(), which fail
with a clear message when an override is not a number.

RULES:
- TTS_TICKS_PER_MS is the engine's tick resolution (100 ns ticks → 10,000/ms)
- PUNCTUATION_DURATION_MS is the fixed width of gap-filled punctuation
- EXTRAPOLATION_CAP_MS caps the assumed per-token duration at the edges
- SEGMENT_LOOKAHEAD unset means the segment mapper scans all remaining segments
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def env_int(name: str, default: Optional[int]) -> Optional[int]:
    """Read an integer override from the environment.

    RULES:
    - Unset or empty variable → default
    - Non-integer value → ValueError naming the variable
    """
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}".format(name, raw)
        ) from None


def env_float(name: str, default: float) -> float:
    """Read a float override from the environment (same rules as env_int)."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            "{} must be a number, got {!r}".format(name, raw)
        ) from None


# ---------------------------------------------------------------------------
# TTS engine constants
# ---------------------------------------------------------------------------

TTS_TICKS_PER_MS = env_float("TTS_TICKS_PER_MS", 10_000.0)
"""Word-boundary offsets and durations arrive in 100-nanosecond ticks."""

DEFAULT_VOICE = os.getenv("DEFAULT_VOICE", "zh-CN-XiaoxiaoNeural")
DEFAULT_RATE = os.getenv("DEFAULT_RATE", "1.0")

# ---------------------------------------------------------------------------
# Alignment tuning
# ---------------------------------------------------------------------------

PUNCTUATION_DURATION_MS = env_float("PUNCTUATION_DURATION_MS", 50.0)
EXTRAPOLATION_CAP_MS = env_float("EXTRAPOLATION_CAP_MS", 500.0)

SEGMENT_LOOKAHEAD = env_int("SEGMENT_LOOKAHEAD", None)
"""Maximum segments examined past the cursor per event; None = unbounded."""

LOCATOR_LINEAR_SCAN_MAX = env_int("LOCATOR_LINEAR_SCAN_MAX", 8)
"""At or below this many mappings, locate() scans linearly."""

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()
