"""Structural turn edits: split one turn into two, merge two into one.

WHY: Diarization regularly glues two speakers (or two clinically
separate responses) into one turn. Splitting the turn must carry every
annotation along to the side it describes; an annotation that ends up
on the wrong side, twice, or nowhere silently corrupts every metric
computed afterwards.

HOW: The split point k is a word index. The first turn keeps words[:k]
and ends at words[k].start; the second keeps words[k:] and starts
there. Each annotation family is placed by the identity it was
produced with:
  repetitions, revisions, morpheme omissions - by word index; the
      second side is re-indexed by -k
  fillers, mispronunciations - by exact (start, end) of a word
  morphemes - by a trustworthy index, else by content, each record
      claiming the next unclaimed matching word occurrence
  pauses - inside the first turn, inside the second turn, in the
      boundary gap (leads into the second turn), else by start time
  utterance errors - by start time when timed, else the first turn

RULES:
- k <= 0 or k >= len(words) is rejected: split_turn returns None
- Concatenating the two word lists reproduces the original exactly
- An index-based record spanning the split point is divided: each side
  keeps its in-range indices, and the original record is reported in
  SplitResult.cross_boundary
- A record with no in-range index at all is reported in
  SplitResult.skipped instead of being placed
- Timestamp-placed records are always placed, worst case by comparing
  their start with the split time
- merge_turns is the inverse of split_turn for splits without
  cross-boundary records
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from disfluency_analyzer.core.ir import (
    Morpheme,
    MorphemeOmission,
    Pause,
    Repetition,
    Revision,
    Turn,
    UtteranceError,
    Word,
)
from disfluency_analyzer.core.words import clean, join_words, same_span

logger = logging.getLogger(__name__)

FIRST = 0
SECOND = 1


@dataclass(frozen=True)
class SplitResult:
    """The two turns produced by a split, plus what needed attention.

    RULES:
    - cross_boundary: original index-based records that were divided
      between the two turns
    - skipped: original records that referenced no valid word and were
      therefore not placed on either turn
    """

    first_turn: Turn
    second_turn: Turn
    cross_boundary: Tuple[Any, ...] = ()
    skipped: Tuple[Any, ...] = ()


class _Partition:
    """Accumulates records for both sides of a split."""

    def __init__(self) -> None:
        self.sides = ([], [])  # type: Tuple[List[Any], List[Any]]
        self.cross_boundary = []  # type: List[Any]
        self.skipped = []  # type: List[Any]

    def put(self, side: int, record: Any) -> None:
        self.sides[side].append(record)

    def first(self) -> tuple:
        return tuple(self.sides[FIRST])

    def second(self) -> tuple:
        return tuple(self.sides[SECOND])


# ---------------------------------------------------------------------------
# Index-based records
# ---------------------------------------------------------------------------


def _divide(indices: Iterable[int], k: int, count: int) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Split indices at k; the right half is re-indexed. Invalid ones drop."""
    left = []  # type: List[int]
    right = []  # type: List[int]
    for idx in indices:
        if 0 <= idx < k:
            left.append(idx)
        elif k <= idx < count:
            right.append(idx - k)
    return tuple(left), tuple(right)


def _mark_for(mark: Optional[int], side: int, k: int, count: int) -> Optional[int]:
    if mark is None:
        return None
    if side == FIRST:
        return mark if 0 <= mark < k else None
    return mark - k if k <= mark < count else None


def _place_repetitions(records: Sequence[Repetition], k: int, count: int, out: _Partition) -> None:
    for rep in records:
        left, right = _divide(rep.words, k, count)
        if not left and not right:
            out.skipped.append(rep)
            continue
        if left and right:
            out.cross_boundary.append(rep)
        if left:
            out.put(FIRST, replace(
                rep, words=left, mark_location=_mark_for(rep.mark_location, FIRST, k, count),
            ))
        if right:
            out.put(SECOND, replace(
                rep, words=right, mark_location=_mark_for(rep.mark_location, SECOND, k, count),
            ))


def _place_revisions(records: Sequence[Revision], k: int, count: int, out: _Partition) -> None:
    for rev in records:
        left, right = _divide(rev.location, k, count)
        if not left and not right:
            out.skipped.append(rev)
            continue
        if left and right:
            out.cross_boundary.append(rev)
        if left:
            out.put(FIRST, replace(rev, location=left))
        if right:
            out.put(SECOND, replace(rev, location=right))


def _place_omissions(
    records: Sequence[MorphemeOmission], k: int, count: int, out: _Partition,
) -> None:
    for omission in records:
        idx = omission.word_index
        if 0 <= idx < k:
            out.put(FIRST, omission)
        elif k <= idx < count:
            out.put(SECOND, replace(omission, word_index=idx - k))
        else:
            out.skipped.append(omission)


# ---------------------------------------------------------------------------
# Timestamp-placed records
# ---------------------------------------------------------------------------


def _side_by_time(start: float, split_time: float) -> int:
    return FIRST if start < split_time else SECOND


def _side_by_span(
    start: float,
    end: float,
    first_words: Sequence[Word],
    second_words: Sequence[Word],
    split_time: float,
) -> int:
    if any(same_span(w, start, end) for w in first_words):
        return FIRST
    if any(same_span(w, start, end) for w in second_words):
        return SECOND
    return _side_by_time(start, split_time)


def _between_consecutive(pause: Pause, words: Sequence[Word]) -> bool:
    return any(
        pause.start >= before.end and pause.end <= after.start
        for before, after in zip(words, words[1:])
    )


def pause_side(
    pause: Pause,
    first_words: Sequence[Word],
    second_words: Sequence[Word],
    split_time: float,
) -> int:
    """Which side of a split a pause belongs to (FIRST or SECOND)."""
    if _between_consecutive(pause, first_words):
        return FIRST
    if _between_consecutive(pause, second_words):
        return SECOND
    # A pause in the boundary gap leads into the second turn.
    if (
        first_words and second_words
        and pause.start >= first_words[-1].end
        and pause.end <= second_words[0].start
    ):
        return SECOND
    return _side_by_time(pause.start, split_time)


def _utterance_error_side(error: UtteranceError, split_time: float) -> int:
    if error.start is None:
        return FIRST
    return _side_by_time(error.start, split_time)


# ---------------------------------------------------------------------------
# Morphemes
# ---------------------------------------------------------------------------


def _trusted_index(morpheme: Morpheme, words: Sequence[Word]) -> bool:
    idx = morpheme.index
    return (
        idx is not None
        and 0 <= idx < len(words)
        and clean(words[idx].text) == clean(morpheme.word)
    )


def _place_morphemes(morphemes: Sequence[Morpheme], words: Sequence[Word], k: int, out: _Partition) -> None:
    """Place morphemes by trusted index first, then by content occurrence."""
    positions = [None] * len(morphemes)  # type: List[Optional[int]]
    claimed = set()  # type: Set[int]

    for i, morpheme in enumerate(morphemes):
        if _trusted_index(morpheme, words) and morpheme.index not in claimed:
            positions[i] = morpheme.index
            claimed.add(morpheme.index)

    for i, morpheme in enumerate(morphemes):
        if positions[i] is not None:
            continue
        target = clean(morpheme.word)
        for j, word in enumerate(words):
            if j not in claimed and clean(word.text) == target:
                positions[i] = j
                claimed.add(j)
                break

    for morpheme, position in zip(morphemes, positions):
        if position is None:
            logger.debug("Morpheme %r matches no word; keeping it on the first turn", morpheme.word)
            out.put(FIRST, replace(morpheme, index=None) if morpheme.index is not None else morpheme)
            continue
        side = FIRST if position < k else SECOND
        local = position if side == FIRST else position - k
        if morpheme.index is not None:
            morpheme = replace(morpheme, index=local)
        out.put(side, morpheme)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def split_turn(turn: Turn, k: int) -> Optional[SplitResult]:
    """Split ``turn`` before word ``k``.

    Args:
        turn: The turn to split.
        k: Index of the first word of the second turn;
           ``0 < k < len(turn.words)``.

    Returns:
        A SplitResult, or None when k does not leave words on both sides.
    """
    words = turn.words
    count = len(words)
    if not 0 < k < count:
        logger.info(
            "Rejected split of %r turn at %d: needs 0 < k < %d", turn.speaker, k, count,
        )
        return None

    split_time = words[k].start
    first_words = words[:k]
    second_words = words[k:]

    repetitions = _Partition()
    _place_repetitions(turn.repetitions, k, count, repetitions)
    revisions = _Partition()
    _place_revisions(turn.revisions, k, count, revisions)
    omissions = _Partition()
    _place_omissions(turn.morpheme_omissions, k, count, omissions)
    morphemes = _Partition()
    _place_morphemes(turn.morphemes, words, k, morphemes)

    fillers = _Partition()
    for filler in turn.filler_words:
        fillers.put(_side_by_span(filler.start, filler.end, first_words, second_words, split_time), filler)
    mispronunciations = _Partition()
    for item in turn.mispronunciations:
        mispronunciations.put(_side_by_span(item.start, item.end, first_words, second_words, split_time), item)
    pauses = _Partition()
    for pause in turn.pauses:
        pauses.put(pause_side(pause, first_words, second_words, split_time), pause)
    errors = _Partition()
    for error in turn.utterance_errors:
        errors.put(_utterance_error_side(error, split_time), error)

    first_turn = replace(
        turn,
        end=split_time,
        words=first_words,
        text=join_words(first_words),
        filler_words=fillers.first(),
        repetitions=repetitions.first(),
        pauses=pauses.first(),
        mispronunciations=mispronunciations.first(),
        morpheme_omissions=omissions.first(),
        morphemes=morphemes.first(),
        revisions=revisions.first(),
        utterance_errors=errors.first(),
    )
    second_turn = replace(
        turn,
        start=split_time,
        words=second_words,
        text=join_words(second_words),
        filler_words=fillers.second(),
        repetitions=repetitions.second(),
        pauses=pauses.second(),
        mispronunciations=mispronunciations.second(),
        morpheme_omissions=omissions.second(),
        morphemes=morphemes.second(),
        revisions=revisions.second(),
        utterance_errors=errors.second(),
    )

    cross_boundary = tuple(repetitions.cross_boundary + revisions.cross_boundary)
    skipped = tuple(repetitions.skipped + revisions.skipped + omissions.skipped)
    for record in cross_boundary:
        logger.warning("Split at %d divides %s across both turns", k, record)
    for record in skipped:
        logger.warning("Split at %d skipped %s: no word index in range", k, record)

    return SplitResult(
        first_turn=first_turn,
        second_turn=second_turn,
        cross_boundary=cross_boundary,
        skipped=skipped,
    )


def _shift_repetition(rep: Repetition, offset: int) -> Repetition:
    mark = rep.mark_location + offset if rep.mark_location is not None else None
    return replace(rep, words=tuple(i + offset for i in rep.words), mark_location=mark)


def merge_turns(first: Turn, second: Turn) -> Turn:
    """Join ``second`` onto the end of ``first``.

    The merged turn keeps the first turn's speaker. Index-based records
    of the second turn are shifted by the first turn's word count.
    """
    offset = len(first.words)
    text = " ".join(part for part in (first.text, second.text) if part)
    return replace(
        first,
        start=min(first.start, second.start),
        end=max(first.end, second.end),
        words=first.words + second.words,
        text=text,
        filler_words=first.filler_words + second.filler_words,
        repetitions=first.repetitions + tuple(
            _shift_repetition(r, offset) for r in second.repetitions
        ),
        pauses=first.pauses + second.pauses,
        mispronunciations=first.mispronunciations + second.mispronunciations,
        morpheme_omissions=first.morpheme_omissions + tuple(
            replace(o, word_index=o.word_index + offset) for o in second.morpheme_omissions
        ),
        morphemes=first.morphemes + tuple(
            replace(m, index=m.index + offset) if m.index is not None else m
            for m in second.morphemes
        ),
        revisions=first.revisions + tuple(
            replace(r, location=tuple(i + offset for i in r.location)) for r in second.revisions
        ),
        utterance_errors=first.utterance_errors + second.utterance_errors,
    )
