"""Clinical language metrics over an annotated transcript.

WHY: Clinicians read a transcript through a handful of standard
numbers: how many words the child produced (NTW), how many different
words (NDW), how long the utterances are in words and in morphemes
(MLUw, MLUm), how often they paused, and how dense the disfluency
annotations are. Every view of the transcript, and every edit, has to
show the same numbers computed the same way.

HOW: Each metric is a plain function of (transcript, speaker). Word
validity and morpheme matching come from core.words; utterances come
from core.segmenter; issue totals from core.issues. analyze_transcript
bundles everything into a SpeechAnalysis. Nothing is cached: callers
recompute from the full transcript after every edit.

RULES:
- A speaker filter restricts every metric to turns whose speaker equals
  it exactly (case-sensitive)
- MLU metrics skip turns whose speaker is in ``excluded_speakers``
  (default: config.EXAMINER_LABELS), with or without a speaker
  filter; an excluded speaker has MLUw = MLUm = 0
- NDW canonical form: lowercased lemma of a matching non-irregular
  morpheme, else the cleaned word
- MLUm: a valid word with a matching non-irregular morpheme counts 2,
  any other valid word counts 1
- Every division by zero yields 0.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Optional, Set

from disfluency_analyzer.config import EXAMINER_LABELS
from disfluency_analyzer.core.ir import Transcript, Turn, Utterance, Word
from disfluency_analyzer.core.issues import (
    IssueCounts,
    available_issue_types,
    count_issues,
    scoped_turns,
)
from disfluency_analyzer.core.segmenter import split_into_utterances
from disfluency_analyzer.core.words import clean, is_valid_word, regular_morpheme_for

logger = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def _valid_words(words: Collection[Word]) -> List[Word]:
    return [w for w in words if is_valid_word(w.text)]


# ---------------------------------------------------------------------------
# Word counts
# ---------------------------------------------------------------------------


def count_total_words(transcript: Transcript, speaker: Optional[str] = None) -> int:
    """NTW: valid words across the in-scope turns."""
    return sum(len(_valid_words(t.words)) for t in scoped_turns(transcript, speaker))


def canonical_form(word: Word, turn: Turn) -> str:
    """The form a word contributes to NDW.

    Two inflected surface forms of one lemma only collapse when a
    morpheme annotation links them; unannotated words keep their
    surface form.
    """
    morpheme = regular_morpheme_for(word.text, turn.morphemes)
    if morpheme is not None and morpheme.lemma:
        return morpheme.lemma.lower()
    return clean(word.text)


def different_word_forms(transcript: Transcript, speaker: Optional[str] = None) -> Set[str]:
    forms = set()  # type: Set[str]
    for turn in scoped_turns(transcript, speaker):
        for word in _valid_words(turn.words):
            forms.add(canonical_form(word, turn))
    return forms


def count_different_words(transcript: Transcript, speaker: Optional[str] = None) -> int:
    """NDW: distinct canonical forms over valid words."""
    return len(different_word_forms(transcript, speaker))


# ---------------------------------------------------------------------------
# Utterance metrics
# ---------------------------------------------------------------------------


def collect_utterances(
    transcript: Transcript,
    speaker: Optional[str] = None,
    excluded_speakers: Optional[Collection[str]] = None,
) -> List[Utterance]:
    """All utterances of the turns that take part in MLU metrics."""
    if excluded_speakers is None:
        excluded_speakers = EXAMINER_LABELS
    utterances = []  # type: List[Utterance]
    for turn in scoped_turns(transcript, speaker):
        if turn.speaker in excluded_speakers:
            continue
        utterances.extend(split_into_utterances(turn))
    return utterances


def utterance_word_count(utterance: Utterance) -> int:
    return len(_valid_words(utterance.words))


def utterance_morpheme_count(utterance: Utterance) -> int:
    total = 0
    for word in _valid_words(utterance.words):
        if regular_morpheme_for(word.text, utterance.morphemes) is not None:
            total += 2
        else:
            total += 1
    return total


def mean_length_utterance_words(
    transcript: Transcript,
    speaker: Optional[str] = None,
    excluded_speakers: Optional[Collection[str]] = None,
) -> float:
    """MLUw: valid words per utterance."""
    utterances = collect_utterances(transcript, speaker, excluded_speakers)
    words = sum(utterance_word_count(u) for u in utterances)
    return _ratio(words, len(utterances))


def mean_length_utterance_morphemes(
    transcript: Transcript,
    speaker: Optional[str] = None,
    excluded_speakers: Optional[Collection[str]] = None,
) -> float:
    """MLUm: morphemes per utterance."""
    utterances = collect_utterances(transcript, speaker, excluded_speakers)
    morphemes = sum(utterance_morpheme_count(u) for u in utterances)
    return _ratio(morphemes, len(utterances))


# ---------------------------------------------------------------------------
# Timing and rates
# ---------------------------------------------------------------------------


def count_pauses(transcript: Transcript, speaker: Optional[str] = None) -> int:
    return sum(len(t.pauses) for t in scoped_turns(transcript, speaker))


def total_duration(transcript: Transcript, speaker: Optional[str] = None) -> float:
    """Summed turn durations in seconds; inverted turns count as zero."""
    return sum(max(t.duration, 0.0) for t in scoped_turns(transcript, speaker))


def speaking_rate(transcript: Transcript, speaker: Optional[str] = None) -> float:
    """Valid words per minute of in-scope turn time."""
    return _ratio(count_total_words(transcript, speaker), total_duration(transcript, speaker)) * 60


def error_rate(transcript: Transcript, speaker: Optional[str] = None) -> float:
    """Annotated issues per 100 valid words."""
    issues = count_issues(transcript, speaker).total
    return _ratio(issues, count_total_words(transcript, speaker)) * 100


# ---------------------------------------------------------------------------
# Full analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpeechAnalysis:
    """Every metric for one transcript (or one speaker of it).

    ``to_dict`` produces the camelCase document consumed by the review
    UI and stored alongside the transcript.
    """

    issue_counts: IssueCounts
    total_words: int
    total_duration: float
    speaking_rate: float
    error_rate: float
    available_issue_types: List[str] = field(default_factory=list)
    turn_count: int = 0
    speaker_count: int = 0
    ntw: int = 0
    ndw: int = 0
    mluw: float = 0.0
    mlum: float = 0.0
    pause_count: int = 0
    speaker: Optional[str] = None

    @property
    def lexical_diversity(self) -> float:
        """NDW / NTW."""
        return _ratio(self.ndw, self.ntw)

    @property
    def morpheme_word_ratio(self) -> float:
        """MLUm / MLUw."""
        return _ratio(self.mlum, self.mluw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speaker": self.speaker,
            "issueCounts": self.issue_counts.as_dict(),
            "totalWords": self.total_words,
            "totalDuration": self.total_duration,
            "speakingRate": self.speaking_rate,
            "errorRate": self.error_rate,
            "availableIssueTypes": list(self.available_issue_types),
            "turnCount": self.turn_count,
            "speakerCount": self.speaker_count,
            "ntw": self.ntw,
            "ndw": self.ndw,
            "mluw": self.mluw,
            "mlum": self.mlum,
            "pauseCount": self.pause_count,
            "lexicalDiversity": self.lexical_diversity,
            "morphemeWordRatio": self.morpheme_word_ratio,
        }


def analyze_transcript(
    transcript: Transcript,
    speaker: Optional[str] = None,
    excluded_speakers: Optional[Collection[str]] = None,
) -> SpeechAnalysis:
    """Compute every metric for ``transcript`` from scratch.

    Args:
        transcript: The annotated transcript snapshot.
        speaker: Optional exact speaker label to scope every metric to.
        excluded_speakers: Labels left out of MLU metrics; defaults to
            config.EXAMINER_LABELS.

    Returns:
        A SpeechAnalysis. Empty or degenerate transcripts produce zeros.
    """
    turns = scoped_turns(transcript, speaker)
    issues = count_issues(transcript, speaker)
    ntw = count_total_words(transcript, speaker)
    utterances = collect_utterances(transcript, speaker, excluded_speakers)
    utterance_words = sum(utterance_word_count(u) for u in utterances)
    utterance_morphemes = sum(utterance_morpheme_count(u) for u in utterances)
    duration = total_duration(transcript, speaker)

    analysis = SpeechAnalysis(
        issue_counts=issues,
        total_words=sum(len(t.words) for t in turns),
        total_duration=duration,
        speaking_rate=_ratio(ntw, duration) * 60,
        error_rate=_ratio(issues.total, ntw) * 100,
        available_issue_types=available_issue_types(transcript, speaker),
        turn_count=len(turns),
        speaker_count=len({t.speaker for t in turns}),
        ntw=ntw,
        ndw=count_different_words(transcript, speaker),
        mluw=_ratio(utterance_words, len(utterances)),
        mlum=_ratio(utterance_morphemes, len(utterances)),
        pause_count=count_pauses(transcript, speaker),
        speaker=speaker,
    )
    logger.debug(
        "Analysis speaker=%r: NTW=%d NDW=%d utterances=%d MLUw=%.2f MLUm=%.2f",
        speaker, analysis.ntw, analysis.ndw, len(utterances), analysis.mluw, analysis.mlum,
    )
    return analysis


def analyze_by_speaker(transcript: Transcript) -> Dict[str, SpeechAnalysis]:
    """One analysis per distinct speaker, in first-seen order.

    The role filter still applies, so an examiner entry reports NTW, NDW
    and issue counts but zero MLU values.
    """
    return {label: analyze_transcript(transcript, label) for label in transcript.speakers}
