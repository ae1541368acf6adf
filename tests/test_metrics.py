"""Tests for the clinical language metrics.

WHY: NTW, NDW, MLUw and MLUm are the numbers clinicians act on. They
must match the standard definitions, stay consistent with each other,
and never divide by zero on sparse transcripts.

HOW: Small single-turn transcripts for each definition, then the shared
sample document (examiner + two child turns) for scoping, examiner
exclusion and the bundled SpeechAnalysis.

RULES:
- Float comparisons use pytest.approx
- Sample document values: NTW 13, NDW 12, 2 child utterances
  (10 words, 11 morphemes), 10 issues, 6.7s of turn time
"""

import pytest

from disfluency_analyzer.core.ir import Morpheme, Transcript
from disfluency_analyzer.core.metrics import (
    analyze_by_speaker,
    analyze_transcript,
    canonical_form,
    count_different_words,
    count_pauses,
    count_total_words,
    different_word_forms,
    error_rate,
    mean_length_utterance_morphemes,
    mean_length_utterance_words,
    speaking_rate,
    total_duration,
)


def _single(turn):
    return Transcript(turns=(turn,))


class TestWordCounts:
    """NTW skips fillers and brackets; NDW counts lemmas case-insensitively."""

    def test_fillers_excluded_from_ntw(self, make_turn):
        transcript = _single(make_turn(["um", "I", "think", "so."]))
        assert count_total_words(transcript) == 3

    def test_brackets_and_punctuation_excluded(self, make_turn):
        transcript = _single(make_turn(["[laughs]", "yes", ".", "uh"]))
        assert count_total_words(transcript) == 1

    def test_ndw_collapses_lemma(self, make_turn):
        cats = Morpheme(word="cats", lemma="cat", morpheme_form="-s")
        transcript = Transcript(turns=(
            make_turn(["The", "cats", "sat."], morphemes=(cats,)),
            make_turn(["A", "cat."], offset=5.0),
        ))
        assert different_word_forms(transcript) == {"the", "cat", "sat", "a"}
        assert count_different_words(transcript) == 4

    def test_ndw_case_and_punctuation_insensitive(self, make_turn):
        transcript = _single(make_turn(["Dog", "dog.", "DOG?"]))
        assert count_different_words(transcript) == 1

    def test_irregular_morpheme_keeps_surface_form(self, make_turn):
        went = Morpheme(word="went", lemma="go", morpheme_form="<IRR>")
        turn = make_turn(["I", "went", "go."], morphemes=(went,))
        assert canonical_form(turn.words[1], turn) == "went"
        assert count_different_words(_single(turn)) == 3

    def test_ndw_never_exceeds_ntw(self, sample_transcript):
        assert count_different_words(sample_transcript) <= count_total_words(sample_transcript)


class TestUtteranceLengths:
    """MLUw and MLUm over sentence utterances, examiner turns excluded."""

    def test_single_regular_morpheme(self, make_turn):
        wants = Morpheme(word="wants", lemma="want", morpheme_form="-s")
        transcript = _single(make_turn(["She", "wants", "to", "go."], morphemes=(wants,)))
        assert mean_length_utterance_words(transcript) == pytest.approx(4.0)
        assert mean_length_utterance_morphemes(transcript) == pytest.approx(5.0)

    def test_filler_does_not_lengthen_utterance(self, make_turn):
        transcript = _single(make_turn(["um", "I", "think", "so."]))
        assert mean_length_utterance_words(transcript) == pytest.approx(3.0)

    def test_averages_over_utterances(self, make_turn):
        transcript = _single(make_turn(["I", "ran.", "Then", "I", "stopped", "fast."]))
        assert mean_length_utterance_words(transcript) == pytest.approx(3.0)

    def test_irregular_counts_once(self, make_turn):
        went = Morpheme(word="went", lemma="go", morpheme_form="<IRR>")
        transcript = _single(make_turn(["I", "went."], morphemes=(went,)))
        assert mean_length_utterance_morphemes(transcript) == pytest.approx(2.0)

    def test_mlum_at_least_mluw(self, sample_transcript):
        assert mean_length_utterance_morphemes(sample_transcript) >= mean_length_utterance_words(sample_transcript)

    def test_examiner_excluded_by_default(self, make_turn):
        transcript = Transcript(turns=(
            make_turn(["What", "did", "you", "see", "there?"], speaker="Examiner"),
            make_turn(["A", "dog."], offset=5.0),
        ))
        assert mean_length_utterance_words(transcript) == pytest.approx(2.0)

    def test_custom_exclusion(self, make_turn):
        transcript = Transcript(turns=(
            make_turn(["What", "did", "you", "see?"], speaker="Parent"),
            make_turn(["A", "dog."], offset=5.0),
        ))
        assert mean_length_utterance_words(transcript) == pytest.approx(3.0)
        assert mean_length_utterance_words(transcript, excluded_speakers={"Parent"}) == pytest.approx(2.0)

    def test_speaker_filter_keeps_exclusion(self, make_turn):
        transcript = _single(make_turn(["What", "did", "you", "see?"], speaker="Examiner"))
        assert mean_length_utterance_words(transcript) == 0.0
        assert mean_length_utterance_words(transcript, speaker="Examiner") == 0.0
        assert mean_length_utterance_morphemes(transcript, speaker="Examiner") == 0.0

    def test_speaker_filter_honours_custom_exclusion(self, make_turn):
        transcript = _single(make_turn(["What", "did", "you", "see?"], speaker="Parent"))
        assert mean_length_utterance_words(transcript, speaker="Parent") == pytest.approx(4.0)
        assert mean_length_utterance_words(
            transcript, speaker="Parent", excluded_speakers={"Parent"},
        ) == 0.0

    def test_examiner_analysis_keeps_word_counts(self, make_turn):
        transcript = _single(make_turn(["What", "did", "you", "see?"], speaker="Examiner"))
        analysis = analyze_transcript(transcript, speaker="Examiner")
        assert analysis.ntw == 4
        assert analysis.mluw == 0.0
        assert analysis.mlum == 0.0


class TestZeroGuards:
    """Empty scopes give zeros instead of dividing by zero."""

    def test_empty_transcript(self):
        analysis = analyze_transcript(Transcript())
        assert analysis.ntw == 0
        assert analysis.ndw == 0
        assert analysis.mluw == 0.0
        assert analysis.mlum == 0.0
        assert analysis.speaking_rate == 0.0
        assert analysis.error_rate == 0.0
        assert analysis.lexical_diversity == 0.0
        assert analysis.morpheme_word_ratio == 0.0

    def test_only_fillers(self, make_turn):
        transcript = _single(make_turn(["um", "uh."]))
        assert mean_length_utterance_words(transcript) == 0.0
        assert error_rate(transcript) == 0.0

    def test_zero_duration_turn(self, make_turn):
        turn = make_turn(["hi"])
        transcript = _single(type(turn)(speaker="A", start=1.0, end=1.0, words=turn.words))
        assert speaking_rate(transcript) == 0.0

    def test_unknown_speaker_yields_zeros(self, sample_transcript):
        analysis = analyze_transcript(sample_transcript, speaker="Nobody")
        assert analysis.turn_count == 0
        assert analysis.ntw == 0
        assert analysis.issue_counts.total == 0


class TestSampleTranscript:
    """Reference values for the shared sample document."""

    def test_overall(self, sample_transcript):
        analysis = analyze_transcript(sample_transcript)
        assert analysis.ntw == 13
        assert analysis.ndw == 12
        assert analysis.total_words == 14
        assert analysis.mluw == pytest.approx(5.0)
        assert analysis.mlum == pytest.approx(5.5)
        assert analysis.pause_count == 3
        assert analysis.turn_count == 3
        assert analysis.speaker_count == 2
        assert analysis.total_duration == pytest.approx(6.7)
        assert analysis.speaking_rate == pytest.approx(13 / 6.7 * 60)
        assert analysis.error_rate == pytest.approx(10 / 13 * 100)

    def test_helpers_agree_with_analysis(self, sample_transcript):
        analysis = analyze_transcript(sample_transcript)
        assert count_pauses(sample_transcript) == analysis.pause_count
        assert total_duration(sample_transcript) == pytest.approx(analysis.total_duration)
        assert speaking_rate(sample_transcript) == pytest.approx(analysis.speaking_rate)
        assert error_rate(sample_transcript) == pytest.approx(analysis.error_rate)

    def test_speaker_scope(self, sample_transcript):
        child = analyze_transcript(sample_transcript, speaker="Child")
        assert child.ntw == 10
        assert child.ndw == 9
        assert child.turn_count == 2
        assert child.speaker == "Child"

    def test_by_speaker(self, sample_transcript):
        results = analyze_by_speaker(sample_transcript)
        assert list(results) == ["Examiner", "Child"]
        assert results["Examiner"].mluw == 0.0
        assert results["Examiner"].ntw == 3
        assert results["Child"].mluw == pytest.approx(5.0)

    def test_idempotent(self, sample_transcript):
        assert analyze_transcript(sample_transcript) == analyze_transcript(sample_transcript)

    def test_derived_ratios(self, sample_transcript):
        analysis = analyze_transcript(sample_transcript)
        assert analysis.lexical_diversity == pytest.approx(12 / 13)
        assert analysis.morpheme_word_ratio == pytest.approx(1.1)

    def test_to_dict_keys(self, sample_transcript):
        document = analyze_transcript(sample_transcript).to_dict()
        assert document["issueCounts"]["morpheme-omission"] == 1
        assert document["availableIssueTypes"][0] == "filler"
        assert set(document) >= {"ntw", "ndw", "mluw", "mlum", "pauseCount", "totalWords"}
