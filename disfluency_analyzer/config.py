"""Configuration constants, role labels, and .env loading.

WHY: Centralizes every tunable value the analysis engine depends on so
it is easy to find, update, and override. Which speaker labels count as
the examiner, which tokens count as fillers, and which morpheme form
marks an irregular inflection are plain data, not literals buried in
the metric code, so a clinic with different transcript conventions can
change them without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level frozensets and strings. List-valued settings are read
from comma-separated environment variables.

RULES:
- EXAMINER_LABELS are matched case-sensitively against Turn.speaker
- FILLER_TOKENS are compared against *cleaned* (lowercased) word text
- IRREGULAR_MORPHEME_FORM marks a morpheme that must not count twice
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_list(name: str, default: str) -> frozenset[str]:
    """Read a comma-separated environment variable as a frozenset.

    Blank items are dropped; surrounding whitespace is stripped but case
    is preserved (speaker labels are case-sensitive).
    """
    raw = os.getenv(name, default)
    return frozenset(item.strip() for item in raw.split(",") if item.strip())


# ---------------------------------------------------------------------------
# Speaker roles
# ---------------------------------------------------------------------------

EXAMINER_LABELS: frozenset[str] = _env_list(
    "DISFLUENCY_EXAMINER_LABELS", "Examiner,EXAMINER",
)
"""Speaker labels excluded from utterance-based metrics (MLUw, MLUm)."""

# ---------------------------------------------------------------------------
# Word normalization
# ---------------------------------------------------------------------------

STRIP_PUNCTUATION = ".,!?;:"
"""Characters stripped from both ends of a word before matching."""

SENTENCE_TERMINATORS: frozenset[str] = frozenset({".", "?", "!"})
"""A word whose raw text contains any of these ends an utterance."""

BRACKET_MARKERS: frozenset[str] = frozenset({"[", "]"})
"""Transcriber markers such as ``[UM]``; bracketed words are never counted."""

FILLER_TOKENS: frozenset[str] = frozenset(
    token.lower() for token in _env_list("DISFLUENCY_FILLER_TOKENS", "um,uh")
)
"""Cleaned word forms that are fillers rather than words."""

IRREGULAR_MORPHEME_FORM = "<IRR>"
"""Morpheme form marking an irregular inflection (counts as one morpheme)."""

# ---------------------------------------------------------------------------
# Logging and service defaults
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("DISFLUENCY_LOG_LEVEL", "WARNING").upper()
SERVER_HOST = os.getenv("DISFLUENCY_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("DISFLUENCY_PORT", "8000"))
