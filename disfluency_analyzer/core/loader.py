"""Transcript document parsing, schema checks, and serialization.

WHY: The upstream analysis service delivers transcripts as JSON with
its own key names ("word", "fillerwords", "utterance-error", ...) and
no guarantee that every optional array is present or well-formed. The
engine needs the typed IR, and edited transcripts need to go back out
in the same shape so they can be re-imported.

HOW: ``parse_transcript`` walks the document turn by turn and builds
IR records, tolerating alternate key spellings and skipping malformed
records with a logged warning. ``validate_document`` runs the bundled
JSON Schema through jsonschema and returns readable problems without
raising. ``transcript_to_dict`` writes the upstream key names back.

RULES:
- The root must be an object with a "segments" (or "turns") list;
  anything else raises TranscriptFormatError
- Missing annotation arrays are empty; non-list arrays are ignored
- Unknown keys are ignored, never rejected
- Out-of-range word indices are dropped at load time, with a warning
- A word with missing timing inherits the previous word's end, so word
  indices stay aligned with the index-based annotation arrays
"""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import jsonschema

from disfluency_analyzer.core.ir import (
    FillerWord,
    Mispronunciation,
    Morpheme,
    MorphemeOmission,
    Pause,
    Repetition,
    Revision,
    Transcript,
    Turn,
    UtteranceError,
    Word,
)
from disfluency_analyzer.core.words import join_words

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "transcript_schema.json"

# Accepted spellings for each turn-level array, upstream name first.
_TURN_KEYS: Dict[str, Tuple[str, ...]] = {
    "filler_words": ("fillerwords", "fillerWords", "filler_words"),
    "repetitions": ("repetitions",),
    "pauses": ("pauses",),
    "mispronunciations": ("mispronunciation", "mispronunciations"),
    "morpheme_omissions": ("morpheme_omissions", "morphemeOmissions"),
    "morphemes": ("morphemes",),
    "revisions": ("revision", "revisions"),
    "utterance_errors": ("utterance-error", "utteranceErrors", "utterance_errors"),
}


class TranscriptFormatError(ValueError):
    """The document is not a transcript at all (bad root or turn list)."""


# ---------------------------------------------------------------------------
# Small coercion helpers
# ---------------------------------------------------------------------------


def _first(raw: Dict[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        if name in raw:
            return raw[name]
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _indices(value: Any, word_count: int, where: str) -> Tuple[int, ...]:
    """Coerce an index list, dropping entries outside the turn."""
    if not isinstance(value, list):
        return ()
    kept = []  # type: List[int]
    for item in value:
        idx = _index(item)
        if idx is None or not 0 <= idx < word_count:
            logger.warning("%s: dropping out-of-range word index %r", where, item)
            continue
        kept.append(idx)
    return tuple(kept)


def _records(raw_turn: Dict[str, Any], attr: str) -> List[Any]:
    value = _first(raw_turn, _TURN_KEYS[attr])
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring non-list %r array on turn", _TURN_KEYS[attr][0])
        return []
    return value


def _timed(raw: Any) -> Optional[Tuple[float, float]]:
    if not isinstance(raw, dict):
        return None
    start = _number(raw.get("start"))
    end = _number(raw.get("end"))
    if start is None or end is None:
        return None
    return start, end


# ---------------------------------------------------------------------------
# Per-record parsing
# ---------------------------------------------------------------------------


def _parse_words(raw_words: Any, where: str) -> Tuple[Word, ...]:
    if not isinstance(raw_words, list):
        if raw_words is not None:
            logger.warning("%s: 'words' is not a list, treating as empty", where)
        return ()

    words = []  # type: List[Word]
    previous_end = 0.0
    for i, raw in enumerate(raw_words):
        if isinstance(raw, str):
            raw = {"word": raw}
        if not isinstance(raw, dict):
            logger.warning("%s: word %d is not an object, using empty text", where, i)
            raw = {}
        text = _first(raw, ("word", "text"))
        start = _number(raw.get("start"))
        end = _number(raw.get("end"))
        if start is None or end is None:
            logger.warning("%s: word %d has no timing, inheriting %.3fs", where, i, previous_end)
            start = previous_end if start is None else start
            end = start if end is None else end
        words.append(Word(text=str(text) if text is not None else "", start=start, end=end))
        previous_end = end
    return tuple(words)


def _parse_turn(raw: Dict[str, Any], position: int) -> Turn:
    where = "turn {}".format(position)
    words = _parse_words(raw.get("words"), where)
    count = len(words)

    fillers = []  # type: List[FillerWord]
    for item in _records(raw, "filler_words"):
        span = _timed(item)
        if span is None:
            logger.warning("%s: skipping filler without timing: %r", where, item)
            continue
        duration = _number(item.get("duration"))
        fillers.append(FillerWord(
            content=str(item.get("content", "")),
            duration=duration if duration is not None else span[1] - span[0],
            start=span[0],
            end=span[1],
        ))

    repetitions = []  # type: List[Repetition]
    for item in _records(raw, "repetitions"):
        if not isinstance(item, dict):
            continue
        mark = _index(_first(item, ("mark_location", "markLocation")))
        if mark is not None and not 0 <= mark < count:
            mark = None
        repetitions.append(Repetition(
            content=str(item.get("content", "")),
            words=_indices(item.get("words"), count, where),
            mark_location=mark,
        ))

    pauses = []  # type: List[Pause]
    for item in _records(raw, "pauses"):
        span = _timed(item)
        if span is None:
            logger.warning("%s: skipping pause without timing: %r", where, item)
            continue
        duration = _number(item.get("duration"))
        pauses.append(Pause(
            start=span[0],
            end=span[1],
            duration=duration if duration is not None else span[1] - span[0],
        ))

    mispronunciations = []  # type: List[Mispronunciation]
    for item in _records(raw, "mispronunciations"):
        span = _timed(item)
        if span is None:
            logger.warning("%s: skipping mispronunciation without timing: %r", where, item)
            continue
        mispronunciations.append(Mispronunciation(
            start=span[0], end=span[1], word=str(item.get("word", "")),
        ))

    omissions = []  # type: List[MorphemeOmission]
    for item in _records(raw, "morpheme_omissions"):
        if not isinstance(item, dict):
            continue
        idx = _index(_first(item, ("word_index", "wordIndex", "index")))
        if idx is None or not 0 <= idx < count:
            logger.warning("%s: skipping morpheme omission with bad index: %r", where, item)
            continue
        omissions.append(MorphemeOmission(
            word_index=idx,
            original=str(item.get("original", "")),
            corrected=str(item.get("corrected", "")),
            category=str(item.get("category", "")),
        ))

    morphemes = []  # type: List[Morpheme]
    for item in _records(raw, "morphemes"):
        if not isinstance(item, dict) or item.get("word") is None:
            continue
        category = _first(item, ("inflectional_category", "inflectionalCategory"))
        morphemes.append(Morpheme(
            word=str(item["word"]),
            lemma=str(item.get("lemma") or ""),
            morpheme_form=str(_first(item, ("morpheme_form", "morphemeForm")) or ""),
            inflectional_category=str(category) if category is not None else None,
            index=_index(_first(item, ("index", "word_index", "wordIndex"))),
        ))

    revisions = []  # type: List[Revision]
    for item in _records(raw, "revisions"):
        if not isinstance(item, dict):
            continue
        revisions.append(Revision(
            content=str(item.get("content", "")),
            location=_indices(item.get("location"), count, where),
        ))

    errors = []  # type: List[UtteranceError]
    for item in _records(raw, "utterance_errors"):
        if isinstance(item, dict):
            errors.append(UtteranceError(
                content=str(item.get("content", "")),
                start=_number(item.get("start")),
                end=_number(item.get("end")),
            ))
        else:
            errors.append(UtteranceError(content=str(item)))

    start = _number(raw.get("start"))
    end = _number(raw.get("end"))
    if start is None:
        start = words[0].start if words else 0.0
    if end is None:
        end = words[-1].end if words else start

    text = raw.get("text")
    return Turn(
        speaker=str(raw.get("speaker", "")),
        start=start,
        end=end,
        words=words,
        text=str(text) if text is not None else join_words(words),
        filler_words=tuple(fillers),
        repetitions=tuple(repetitions),
        pauses=tuple(pauses),
        mispronunciations=tuple(mispronunciations),
        morpheme_omissions=tuple(omissions),
        morphemes=tuple(morphemes),
        revisions=tuple(revisions),
        utterance_errors=tuple(errors),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _schema_validator() -> jsonschema.Draft7Validator:
    """The bundled schema, read and compiled once per process."""
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    return jsonschema.Draft7Validator(schema)


def validate_document(data: Any) -> List[str]:
    """Check a raw document against the bundled transcript schema.

    WHY: Upstream documents are processed permissively, but anomalies
    should still be visible to the caller.

    HOW: Runs a Draft 7 validator and formats each error as
    "<json path>: <message>". Never raises for invalid documents.

    Returns:
        A list of problem descriptions, empty when the document conforms.
    """
    validator = _schema_validator()
    problems = []  # type: List[str]
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
        path = "/".join(str(p) for p in error.absolute_path) or "<root>"
        problems.append("{}: {}".format(path, error.message))
    return problems


def parse_transcript(data: Any, problems: Optional[List[str]] = None) -> Transcript:
    """Build a Transcript IR from a parsed JSON document.

    Args:
        data: The decoded JSON document ({"segments": [...]}).
        problems: Result of validate_document(data) when the caller
            already has it; the document is validated here otherwise.

    Returns:
        The Transcript IR. Malformed records below the turn level are
        skipped with a logged warning.

    Raises:
        TranscriptFormatError: If the root is not an object or has no
            turn list.
    """
    if not isinstance(data, dict):
        raise TranscriptFormatError("Transcript document must be a JSON object")
    raw_turns = _first(data, ("segments", "turns"))
    if not isinstance(raw_turns, list):
        raise TranscriptFormatError("Invalid transcript structure: missing segments array")

    if problems is None:
        problems = validate_document(data)
    for problem in problems:
        logger.warning("Transcript schema: %s", problem)

    turns = []  # type: List[Turn]
    for position, raw in enumerate(raw_turns):
        if not isinstance(raw, dict):
            logger.warning("Skipping turn %d: not an object", position)
            continue
        turns.append(_parse_turn(raw, position))
    logger.debug("Parsed %d turns", len(turns))
    return Transcript(turns=tuple(turns))


def load_transcript(path: Path | str) -> Transcript:
    """Read and parse a transcript JSON file.

    Raises:
        TranscriptFormatError: If the file is not valid JSON or not a
            transcript document.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TranscriptFormatError("Invalid JSON in {}: {}".format(path, exc)) from exc
    return parse_transcript(data)


def turn_to_dict(turn: Turn) -> Dict[str, Any]:
    """Serialize a Turn with the upstream document's key names."""
    return {
        "speaker": turn.speaker,
        "start": turn.start,
        "end": turn.end,
        "text": turn.text,
        "words": [{"word": w.text, "start": w.start, "end": w.end} for w in turn.words],
        "fillerwords": [
            {"content": f.content, "duration": f.duration, "start": f.start, "end": f.end}
            for f in turn.filler_words
        ],
        "repetitions": [
            _without_none({
                "content": r.content,
                "words": list(r.words),
                "mark_location": r.mark_location,
            })
            for r in turn.repetitions
        ],
        "pauses": [
            {"start": p.start, "end": p.end, "duration": p.duration} for p in turn.pauses
        ],
        "mispronunciation": [
            _without_none({"start": m.start, "end": m.end, "word": m.word or None})
            for m in turn.mispronunciations
        ],
        "morpheme_omissions": [
            {
                "word_index": o.word_index,
                "original": o.original,
                "corrected": o.corrected,
                "category": o.category,
            }
            for o in turn.morpheme_omissions
        ],
        "morphemes": [
            _without_none({
                "word": m.word,
                "lemma": m.lemma,
                "morpheme_form": m.morpheme_form,
                "inflectional_category": m.inflectional_category,
                "index": m.index,
            })
            for m in turn.morphemes
        ],
        "revision": [
            {"content": r.content, "location": list(r.location)} for r in turn.revisions
        ],
        "utterance-error": [
            _without_none({"content": e.content, "start": e.start, "end": e.end})
            for e in turn.utterance_errors
        ],
    }


def transcript_to_dict(transcript: Transcript) -> Dict[str, Any]:
    return {"segments": [turn_to_dict(t) for t in transcript.turns]}


def _without_none(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if v is not None}
