"""Per-category issue counts and the list of categories present.

WHY: The review UI shows how many annotations of each kind a transcript
carries and offers a filter only for kinds that actually occur. Both
need the same roll-up over the annotation arrays.

HOW: One pass over the (optionally speaker-scoped) turns, summing the
length of each annotation array. Morphemes count only when their form
is visible, i.e. not irregular.

RULES:
- Category wire names: pause, filler, repetition, mispronunciation,
  morpheme, morpheme-omission, revision, utterance-error
- available_issue_types is in first-seen order: turns in order, and
  within a turn the fixed ISSUE_TYPE_ORDER
- Pure and deterministic
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from disfluency_analyzer.core.ir import Transcript, Turn
from disfluency_analyzer.core.words import is_irregular

ISSUE_TYPE_ORDER = (
    "filler",
    "repetition",
    "pause",
    "utterance-error",
    "mispronunciation",
    "morpheme-omission",
    "morpheme",
    "revision",
)


@dataclass(frozen=True)
class IssueCounts:
    pause: int = 0
    filler: int = 0
    repetition: int = 0
    mispronunciation: int = 0
    morpheme: int = 0
    morpheme_omission: int = 0
    revision: int = 0
    utterance_error: int = 0

    @property
    def total(self) -> int:
        return sum(self.as_dict().values())

    def as_dict(self) -> Dict[str, int]:
        """Counts keyed by wire name, in display order."""
        return {
            "pause": self.pause,
            "filler": self.filler,
            "repetition": self.repetition,
            "mispronunciation": self.mispronunciation,
            "morpheme": self.morpheme,
            "morpheme-omission": self.morpheme_omission,
            "revision": self.revision,
            "utterance-error": self.utterance_error,
        }


def scoped_turns(transcript: Transcript, speaker: Optional[str] = None) -> List[Turn]:
    """Turns whose speaker equals ``speaker`` exactly, or all turns."""
    if speaker is None:
        return list(transcript.turns)
    return [t for t in transcript.turns if t.speaker == speaker]


def _visible_morphemes(turn: Turn) -> int:
    return sum(1 for m in turn.morphemes if not is_irregular(m))


def turn_issue_counts(turn: Turn) -> Dict[str, int]:
    """Counts for a single turn keyed by wire name, in ISSUE_TYPE_ORDER."""
    return {
        "filler": len(turn.filler_words),
        "repetition": len(turn.repetitions),
        "pause": len(turn.pauses),
        "utterance-error": len(turn.utterance_errors),
        "mispronunciation": len(turn.mispronunciations),
        "morpheme-omission": len(turn.morpheme_omissions),
        "morpheme": _visible_morphemes(turn),
        "revision": len(turn.revisions),
    }


def count_issues(transcript: Transcript, speaker: Optional[str] = None) -> IssueCounts:
    totals = dict.fromkeys(ISSUE_TYPE_ORDER, 0)
    for turn in scoped_turns(transcript, speaker):
        for name, count in turn_issue_counts(turn).items():
            totals[name] += count
    return IssueCounts(
        pause=totals["pause"],
        filler=totals["filler"],
        repetition=totals["repetition"],
        mispronunciation=totals["mispronunciation"],
        morpheme=totals["morpheme"],
        morpheme_omission=totals["morpheme-omission"],
        revision=totals["revision"],
        utterance_error=totals["utterance-error"],
    )


def available_issue_types(transcript: Transcript, speaker: Optional[str] = None) -> List[str]:
    """Category names with at least one record, in first-seen order."""
    return _first_seen(scoped_turns(transcript, speaker))


def _first_seen(turns: Iterable[Turn]) -> List[str]:
    seen = []  # type: List[str]
    for turn in turns:
        for name, count in turn_issue_counts(turn).items():
            if count and name not in seen:
                seen.append(name)
    return seen
