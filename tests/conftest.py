"""Shared test fixtures for the disfluency_analyzer test suite.

WHY: Most tests need small hand-built turns with predictable timing, and
several need the same realistic two-speaker document. Centralizing them
here keeps timestamps consistent across modules.

HOW: ``make_turn`` is a factory fixture: word i starts at i * 0.5s and
lasts 0.4s, so consecutive words are separated by a 0.1s gap that pauses
can be placed in. ``sample_document`` is a raw upstream-format dict with
an examiner turn and two child turns carrying every annotation family;
``sample_transcript`` is the same document parsed into the IR.

RULES:
- Word timing: start = offset + i * 0.5, end = start + 0.4
- The sample document uses upstream key names ("word", "fillerwords",
  "utterance-error", ...)
"""

from typing import Any, Callable, Dict, List, Sequence

import pytest

from disfluency_analyzer.core.ir import Turn, Word
from disfluency_analyzer.core.loader import parse_transcript

WORD_STEP = 0.5
WORD_LENGTH = 0.4


def _build_turn(texts: Sequence[str], speaker: str = "Child", offset: float = 0.0, **annotations) -> Turn:
    words = tuple(
        Word(text=t, start=offset + i * WORD_STEP, end=offset + i * WORD_STEP + WORD_LENGTH)
        for i, t in enumerate(texts)
    )
    return Turn(
        speaker=speaker,
        start=words[0].start if words else offset,
        end=words[-1].end if words else offset,
        words=words,
        text=" ".join(texts),
        **annotations,
    )


@pytest.fixture
def make_turn() -> Callable[..., Turn]:
    """Factory: make_turn(["She", "wants", "to", "go."], speaker="Child", **annotations)."""
    return _build_turn


def _raw_words(texts: List[str], offset: float) -> List[Dict[str, Any]]:
    return [
        {"word": t, "start": round(offset + i * WORD_STEP, 3), "end": round(offset + i * WORD_STEP + WORD_LENGTH, 3)}
        for i, t in enumerate(texts)
    ]


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """Examiner question, then two child turns with every annotation kind.

    Child turn 1 words: um(0) the(1) cats(2) is(3) run(4) runned.(5)
    Child turn 2 words: I(0) I(1) want(2) to(3) go.(4)
    """
    examiner_words = _raw_words(["What", "happened", "next?"], 0.0)
    child1_words = _raw_words(["um", "the", "cats", "is", "run", "runned."], 2.0)
    child2_words = _raw_words(["I", "I", "want", "to", "go."], 6.0)
    return {
        "segments": [
            {
                "speaker": "Examiner",
                "start": 0.0,
                "end": 1.4,
                "text": "What happened next?",
                "words": examiner_words,
                "pauses": [],
            },
            {
                "speaker": "Child",
                "start": 2.0,
                "end": 4.9,
                "text": "um the cats is run runned.",
                "words": child1_words,
                "fillerwords": [
                    {"content": "um", "duration": 0.4, "start": 2.0, "end": 2.4},
                ],
                "pauses": [
                    {"start": 2.4, "end": 2.5, "duration": 0.1},
                ],
                "mispronunciation": [
                    {"start": 4.5, "end": 4.9, "word": "runned."},
                ],
                "morphemes": [
                    {"word": "cats", "lemma": "cat", "morpheme_form": "-s", "inflectional_category": "plural"},
                    {"word": "runned", "lemma": "run", "morpheme_form": "<IRR>"},
                ],
                "morpheme_omissions": [
                    {"word_index": 3, "original": "is", "corrected": "are", "category": "agreement"},
                ],
                "revision": [
                    {"content": "run runned", "location": [4, 5]},
                ],
                "utterance-error": [
                    {"content": "agreement error", "start": 2.0, "end": 4.9},
                ],
                "confidence": 0.87,
            },
            {
                "speaker": "Child",
                "start": 6.0,
                "end": 8.4,
                "words": child2_words,
                "repetitions": [
                    {"content": "I I", "words": [0, 1], "mark_location": 1},
                ],
                "pauses": [
                    {"start": 6.9, "end": 7.0, "duration": 0.1},
                    {"start": 7.4, "end": 7.5, "duration": 0.1},
                ],
            },
        ]
    }


@pytest.fixture
def sample_transcript(sample_document):
    return parse_transcript(sample_document)
