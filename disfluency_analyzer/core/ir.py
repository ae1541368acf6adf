"""Intermediate representation dataclasses for annotated transcripts.

WHY: The upstream analysis service returns loosely-typed JSON: a list of
speaker turns, each with a word array and up to eight independently
produced annotation arrays. The metric calculator, the turn splitter,
and every formatter need the same structure with the same field names.
The IR provides a single, well-typed form that all of them consume,
decoupling JSON parsing from analysis.

HOW: Frozen dataclasses for the atomic records:
  Word             - one time-aligned word
  FillerWord       - filler, matched to a word by exact (start, end)
  Repetition       - repeated words, by index into the turn's words
  Pause            - silence, located only by timestamp
  Mispronunciation - matched to a word by exact (start, end)
  Morpheme         - inflection, matched to a word by cleaned text
  MorphemeOmission - omitted morpheme, by word index
  Revision         - self-correction, by word indices
  UtteranceError   - turn-level flag
and two containers:
  Turn             - one speaker turn owning its words and annotations
  Transcript       - the ordered list of turns
plus the derived Utterance used only for MLU metrics.

RULES:
- Records are immutable; edits produce new records via dataclasses.replace
- Annotation arrays are tuples and default to empty
- Index-based records reference only their owning turn's words
- All times are float seconds
- Utterance is never serialized back to the document
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Word:
    """A single time-aligned word as transcribed.

    RULES:
    - text: raw transcript text, punctuation attached ("go.", "um,")
    - start <= end, both in seconds
    """

    text: str
    start: float
    end: float


@dataclass(frozen=True)
class FillerWord:
    content: str
    duration: float
    start: float
    end: float


@dataclass(frozen=True)
class Repetition:
    """A repetition spanning one or more words of the owning turn.

    RULES:
    - words: 0-based indices into Turn.words
    - mark_location: optional index of the word the marker is drawn on
    """

    content: str
    words: Tuple[int, ...] = ()
    mark_location: Optional[int] = None


@dataclass(frozen=True)
class Pause:
    start: float
    end: float
    duration: float


@dataclass(frozen=True)
class Mispronunciation:
    start: float
    end: float
    word: str = ""


@dataclass(frozen=True)
class Morpheme:
    """An inflectional morpheme annotation.

    WHY: The upstream morpheme array is produced in a separate pass and
    its positions drift from the word array, so morphemes are matched to
    words by cleaned text rather than by position.

    RULES:
    - word: surface form the morpheme belongs to ("cats")
    - lemma: base form ("cat")
    - morpheme_form: affix ("-s") or "<IRR>" for irregular inflection
    - index: upstream position hint; only trusted when it agrees with
      the word text at that position
    """

    word: str
    lemma: str
    morpheme_form: str
    inflectional_category: Optional[str] = None
    index: Optional[int] = None


@dataclass(frozen=True)
class MorphemeOmission:
    word_index: int
    original: str = ""
    corrected: str = ""
    category: str = ""


@dataclass(frozen=True)
class Revision:
    content: str
    location: Tuple[int, ...] = ()


@dataclass(frozen=True)
class UtteranceError:
    """A turn-level marker flagging the whole turn.

    Timestamps are optional; when present they are used to place the
    marker after a split.
    """

    content: str = ""
    start: Optional[float] = None
    end: Optional[float] = None


@dataclass(frozen=True)
class Turn:
    """One contiguous speaker turn with its words and annotations.

    WHY: The turn is the unit of ownership: every annotation record
    belongs to exactly one turn and references only that turn's words.
    Splitting, merging and editing all operate turn by turn.

    RULES:
    - start/end bound every word in ``words``
    - words are ordered by start time
    - text mirrors the joined word texts after structural edits
    """

    speaker: str
    start: float
    end: float
    words: Tuple[Word, ...] = ()
    text: str = ""
    filler_words: Tuple[FillerWord, ...] = ()
    repetitions: Tuple[Repetition, ...] = ()
    pauses: Tuple[Pause, ...] = ()
    mispronunciations: Tuple[Mispronunciation, ...] = ()
    morpheme_omissions: Tuple[MorphemeOmission, ...] = ()
    morphemes: Tuple[Morpheme, ...] = ()
    revisions: Tuple[Revision, ...] = ()
    utterance_errors: Tuple[UtteranceError, ...] = ()

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Transcript:
    """The complete annotated transcript: an ordered list of turns."""

    turns: Tuple[Turn, ...] = ()

    @property
    def speakers(self) -> Tuple[str, ...]:
        """Distinct speaker labels in first-seen order."""
        seen = {}  # type: dict
        for turn in self.turns:
            seen.setdefault(turn.speaker, None)
        return tuple(seen)


@dataclass(frozen=True)
class Utterance:
    """A sentence-bounded run of a turn's words, used only for MLU metrics."""

    words: Tuple[Word, ...] = field(default_factory=tuple)
    morphemes: Tuple[Morpheme, ...] = field(default_factory=tuple)
