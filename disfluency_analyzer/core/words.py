"""Word normalization and annotation matching primitives.

WHY: Every metric and every structural edit has to answer the same two
questions about a word: "does it count?" and "which annotation belongs
to it?". Answering them in one place keeps NTW, NDW, MLU, the issue
counts and the splitter consistent with each other.

HOW: Plain functions over strings and IR records. Cleaning lowercases
and strips sentence punctuation from both ends. Morphemes are matched
by cleaned text, never by array position; fillers and mispronunciations
are matched by exact (start, end) pairs.

RULES:
- All functions are pure and total: absence is None or False, never an
  exception
- A word is valid iff its cleaned text is non-empty, is not a filler
  token, has no bracket marker, and is not pure punctuation
- A morpheme is irregular when its form is missing or "<IRR>"
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from disfluency_analyzer.config import (
    BRACKET_MARKERS,
    FILLER_TOKENS,
    IRREGULAR_MORPHEME_FORM,
    SENTENCE_TERMINATORS,
    STRIP_PUNCTUATION,
)
from disfluency_analyzer.core.ir import Morpheme, Word

# Text made only of sentence punctuation ("." or "?!").
_PUNCTUATION_RE = re.compile(r"^[.,!?;:]+$")


def clean(text: str) -> str:
    """Lowercase ``text`` and strip ``.,!?;:`` from either end."""
    if not text:
        return ""
    return text.lower().strip(STRIP_PUNCTUATION)


def is_filler_or_punctuation(text: str) -> bool:
    """Return True if ``text`` must not be counted as a word."""
    cleaned = clean(text)
    if not cleaned or cleaned in FILLER_TOKENS:
        return True
    if any(marker in text for marker in BRACKET_MARKERS):
        return True
    return bool(_PUNCTUATION_RE.match(text))


def is_valid_word(text: str) -> bool:
    return not is_filler_or_punctuation(text)


def ends_sentence(text: str) -> bool:
    """True if the raw word text carries a sentence terminator."""
    return any(mark in text for mark in SENTENCE_TERMINATORS)


def is_irregular(morpheme: Morpheme) -> bool:
    """True if the morpheme must be counted as a single morpheme.

    An empty form is treated like "<IRR>": there is no visible affix to
    count separately.
    """
    return not morpheme.morpheme_form or morpheme.morpheme_form == IRREGULAR_MORPHEME_FORM


def match_morpheme(text: str, morphemes: Iterable[Morpheme]) -> Optional[Morpheme]:
    """Return the first morpheme whose cleaned ``word`` equals cleaned ``text``.

    WHY: Morpheme arrays are produced by a separate pass whose positions
    do not line up with the word array. Matching by content is stable
    where matching by index is not.
    """
    target = clean(text)
    if not target:
        return None
    for morpheme in morphemes:
        if clean(morpheme.word) == target:
            return morpheme
    return None


def regular_morpheme_for(text: str, morphemes: Iterable[Morpheme]) -> Optional[Morpheme]:
    """Like match_morpheme, but None when the match is irregular."""
    morpheme = match_morpheme(text, morphemes)
    if morpheme is None or is_irregular(morpheme):
        return None
    return morpheme


def same_span(word: Word, start: float, end: float) -> bool:
    """Exact timestamp identity used for fillers and mispronunciations."""
    return word.start == start and word.end == end


def join_words(words: Iterable[Word]) -> str:
    """Rebuild a turn's display text from its words."""
    return " ".join(w.text for w in words)
