"""Word-level and transcript-level edits that keep annotations aligned.

WHY: Reviewers fix transcripts by hand: renaming a speaker, correcting
a word, inserting a missed word, deleting a spurious one, splitting or
merging turns. Inserting or deleting a word moves every later index,
so index-based annotations must move with it or they end up pointing
at the wrong word.

HOW: Every function takes immutable values and returns new ones.
Word-level edits rewrite the index-based records of the owning turn;
transcript-level edits delegate to core.splitter and rebuild the turn
tuple. Invalid positions are a no-op signalled by returning None.

RULES:
- insert_word shifts indices at or after the insertion point by +1
- delete_word removes the deleted index and shifts later indices by -1;
  a record left with no index is dropped and logged
- Fillers and mispronunciations timed exactly on a deleted word are
  dropped with it; morphemes are dropped only when no remaining word
  still carries their text
- Turn.text is rebuilt from the words after any word edit
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from disfluency_analyzer.core.ir import Morpheme, MorphemeOmission, Repetition, Transcript, Turn, Word
from disfluency_analyzer.core.splitter import SplitResult, merge_turns, split_turn
from disfluency_analyzer.core.words import clean, join_words, same_span

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Turn-level edits
# ---------------------------------------------------------------------------


def rename_speaker(turn: Turn, speaker: str) -> Turn:
    return replace(turn, speaker=speaker)


def edit_word_text(turn: Turn, index: int, text: str) -> Optional[Turn]:
    """Replace the text of one word, keeping its timing."""
    if not 0 <= index < len(turn.words):
        logger.info("Rejected word edit at %d: turn has %d words", index, len(turn.words))
        return None
    words = list(turn.words)
    words[index] = replace(words[index], text=text)
    return replace(turn, words=tuple(words), text=join_words(words))


def _shift_from(indices: Tuple[int, ...], position: int, delta: int) -> Tuple[int, ...]:
    return tuple(i + delta if i >= position else i for i in indices)


def insert_word(turn: Turn, after_index: int, word: Word) -> Optional[Turn]:
    """Insert ``word`` after ``after_index`` (-1 inserts at the front)."""
    if not -1 <= after_index < len(turn.words):
        logger.info("Rejected insert after %d: turn has %d words", after_index, len(turn.words))
        return None
    position = after_index + 1
    words = turn.words[:position] + (word,) + turn.words[position:]

    repetitions = tuple(
        replace(
            r,
            words=_shift_from(r.words, position, 1),
            mark_location=(
                r.mark_location + 1
                if r.mark_location is not None and r.mark_location >= position
                else r.mark_location
            ),
        )
        for r in turn.repetitions
    )
    return replace(
        turn,
        start=min(turn.start, word.start) if turn.words else word.start,
        end=max(turn.end, word.end) if turn.words else word.end,
        words=words,
        text=join_words(words),
        repetitions=repetitions,
        revisions=tuple(
            replace(r, location=_shift_from(r.location, position, 1)) for r in turn.revisions
        ),
        morpheme_omissions=tuple(
            replace(o, word_index=o.word_index + 1) if o.word_index >= position else o
            for o in turn.morpheme_omissions
        ),
        morphemes=tuple(
            replace(m, index=m.index + 1)
            if m.index is not None and m.index >= position else m
            for m in turn.morphemes
        ),
    )


def _drop_index(indices: Tuple[int, ...], index: int) -> Tuple[int, ...]:
    return tuple(i - 1 if i > index else i for i in indices if i != index)


def _repetition_without(rep: Repetition, index: int) -> Repetition:
    mark = rep.mark_location
    if mark == index:
        mark = None
    elif mark is not None and mark > index:
        mark -= 1
    return replace(rep, words=_drop_index(rep.words, index), mark_location=mark)


def _morphemes_without(
    morphemes: Tuple[Morpheme, ...], removed: Word, remaining: Tuple[Word, ...], index: int,
) -> Tuple[Morpheme, ...]:
    removed_text = clean(removed.text)
    still_present = any(clean(w.text) == removed_text for w in remaining)
    kept = []  # type: List[Morpheme]
    for m in morphemes:
        if not still_present and clean(m.word) == removed_text:
            logger.info("Dropping morpheme %r with deleted word", m.word)
            continue
        if m.index is not None:
            if m.index == index:
                m = replace(m, index=None)
            elif m.index > index:
                m = replace(m, index=m.index - 1)
        kept.append(m)
    return tuple(kept)


def delete_word(turn: Turn, index: int) -> Optional[Turn]:
    """Delete one word and re-index every annotation that follows it."""
    if not 0 <= index < len(turn.words):
        logger.info("Rejected delete at %d: turn has %d words", index, len(turn.words))
        return None
    removed = turn.words[index]
    words = turn.words[:index] + turn.words[index + 1:]

    def timed_elsewhere(start: float, end: float) -> bool:
        return any(same_span(w, start, end) for w in words)

    repetitions = []  # type: List[Repetition]
    for rep in turn.repetitions:
        updated = _repetition_without(rep, index)
        if rep.words and not updated.words:
            logger.info("Dropping repetition %r: its only word was deleted", rep.content)
            continue
        repetitions.append(updated)

    revisions = []
    for rev in turn.revisions:
        location = _drop_index(rev.location, index)
        if rev.location and not location:
            logger.info("Dropping revision %r: its only word was deleted", rev.content)
            continue
        revisions.append(replace(rev, location=location))

    omissions = []  # type: List[MorphemeOmission]
    for omission in turn.morpheme_omissions:
        if omission.word_index == index:
            logger.info("Dropping morpheme omission %r: its word was deleted", omission.original)
            continue
        if omission.word_index > index:
            omission = replace(omission, word_index=omission.word_index - 1)
        omissions.append(omission)

    return replace(
        turn,
        words=words,
        text=join_words(words),
        repetitions=tuple(repetitions),
        revisions=tuple(revisions),
        morpheme_omissions=tuple(omissions),
        morphemes=_morphemes_without(turn.morphemes, removed, words, index),
        filler_words=tuple(
            f for f in turn.filler_words
            if not same_span(removed, f.start, f.end) or timed_elsewhere(f.start, f.end)
        ),
        mispronunciations=tuple(
            m for m in turn.mispronunciations
            if not same_span(removed, m.start, m.end) or timed_elsewhere(m.start, m.end)
        ),
    )


# ---------------------------------------------------------------------------
# Transcript-level edits
# ---------------------------------------------------------------------------


def _valid_turn_index(transcript: Transcript, turn_index: int) -> bool:
    return 0 <= turn_index < len(transcript.turns)


def replace_turn(transcript: Transcript, turn_index: int, turn: Turn) -> Optional[Transcript]:
    if not _valid_turn_index(transcript, turn_index):
        return None
    turns = list(transcript.turns)
    turns[turn_index] = turn
    return replace(transcript, turns=tuple(turns))


def split_turn_at(
    transcript: Transcript, turn_index: int, k: int,
) -> Optional[Tuple[Transcript, SplitResult]]:
    """Split one turn of the transcript; None when nothing changed."""
    if not _valid_turn_index(transcript, turn_index):
        logger.info("Rejected split: no turn %d", turn_index)
        return None
    result = split_turn(transcript.turns[turn_index], k)
    if result is None:
        return None
    turns = (
        transcript.turns[:turn_index]
        + (result.first_turn, result.second_turn)
        + transcript.turns[turn_index + 1:]
    )
    return replace(transcript, turns=turns), result


def merge_turn_with_next(transcript: Transcript, turn_index: int) -> Optional[Transcript]:
    if not 0 <= turn_index < len(transcript.turns) - 1:
        logger.info("Rejected merge: turn %d has no successor", turn_index)
        return None
    merged = merge_turns(transcript.turns[turn_index], transcript.turns[turn_index + 1])
    turns = transcript.turns[:turn_index] + (merged,) + transcript.turns[turn_index + 2:]
    return replace(transcript, turns=turns)


def remove_turn(transcript: Transcript, turn_index: int) -> Optional[Transcript]:
    if not _valid_turn_index(transcript, turn_index):
        return None
    return replace(
        transcript,
        turns=transcript.turns[:turn_index] + transcript.turns[turn_index + 1:],
    )
