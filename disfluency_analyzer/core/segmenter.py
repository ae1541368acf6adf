"""Sentence-level utterance segmentation for MLU metrics.

WHY: A speaker turn often holds several sentences, and mean length of
utterance is defined per sentence, not per turn. The segmenter cuts a
turn at sentence-ending punctuation and drops runs that contain nothing
countable.

HOW: Scan the turn's words left to right into a pending run. A word
whose raw text contains ".", "?" or "!" closes the run. A closed run
becomes an Utterance only if it holds at least one valid word; its
morphemes are the turn morphemes that content-match any word in the
run. Whatever remains after the last terminator is closed the same way.

RULES:
- A terminator on a filler ("uh.") still closes the run, but the filler
  never makes the run meaningful on its own
- Utterance.words keeps fillers and punctuation; metric code filters
- Morphemes are matched by cleaned text, never by index
- Output order is scan order; calling again restarts the scan
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence

from disfluency_analyzer.core.ir import Morpheme, Turn, Utterance, Word
from disfluency_analyzer.core.words import clean, ends_sentence, is_valid_word

logger = logging.getLogger(__name__)


def _utterance_morphemes(run: Sequence[Word], morphemes: Sequence[Morpheme]) -> tuple:
    """Turn morphemes whose cleaned word matches any word in ``run``."""
    run_texts = {clean(w.text) for w in run}
    run_texts.discard("")
    return tuple(m for m in morphemes if clean(m.word) in run_texts)


def _close_run(run: List[Word], turn: Turn) -> Utterance | None:
    if not any(is_valid_word(w.text) for w in run):
        logger.debug("Discarding run without valid words: %r", [w.text for w in run])
        return None
    return Utterance(
        words=tuple(run),
        morphemes=_utterance_morphemes(run, turn.morphemes),
    )


def iter_utterances(turn: Turn) -> Iterator[Utterance]:
    """Yield the sentence-level utterances of ``turn`` in scan order."""
    run = []  # type: List[Word]
    for word in turn.words:
        run.append(word)
        if ends_sentence(word.text):
            utterance = _close_run(run, turn)
            if utterance is not None:
                yield utterance
            run = []

    if run:
        utterance = _close_run(run, turn)
        if utterance is not None:
            yield utterance


def split_into_utterances(turn: Turn) -> List[Utterance]:
    utterances = list(iter_utterances(turn))
    logger.debug(
        "Turn %r (%d words) -> %d utterances",
        turn.speaker, len(turn.words), len(utterances),
    )
    return utterances
