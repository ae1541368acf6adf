"""Plain text transcript with inline disfluency markers.

WHY: Clinicians review and archive transcripts as readable text, with
the annotations that matter at a glance: where the speaker paused and
for how long, which words were mispronounced, which turns were flagged
as utterance errors.

HOW: One paragraph per turn under a "Speaker:" header. Words are joined
with single spaces. A pause lying between two consecutive words is
written after the first of them as "[0.52s]". A word with a
mispronunciation timed exactly on it is wrapped in asterisks. A turn
with utterance errors ends with "[utterance error]".

RULES:
- Header format: "<speaker>:" on its own line, text on the next line
- Double newline between paragraphs
- No trailing whitespace on any line
- Output suffix: "-transcript.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List, Optional

from disfluency_analyzer.core.ir import Pause, Transcript, Turn
from disfluency_analyzer.core.words import same_span
from disfluency_analyzer.formatters.base import BaseFormatter, FormatterOutput


def _pause_after(turn: Turn, index: int) -> Optional[Pause]:
    if index >= len(turn.words) - 1:
        return None
    current, following = turn.words[index], turn.words[index + 1]
    for pause in turn.pauses:
        if pause.start >= current.end and pause.end <= following.start:
            return pause
    return None


def render_turn(turn: Turn) -> str:
    """Render one turn's words with pause and mispronunciation markers."""
    parts = []  # type: List[str]
    for i, word in enumerate(turn.words):
        text = word.text
        if any(same_span(word, m.start, m.end) for m in turn.mispronunciations):
            text = "*{}*".format(text)
        parts.append(text)
        pause = _pause_after(turn, i)
        if pause is not None:
            parts.append("[{:.2f}s]".format(pause.duration))
    if turn.utterance_errors:
        parts.append("[utterance error]")
    return " ".join(parts)


class PlainTextFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        paragraphs = [
            "{}:\n{}".format(turn.speaker or "Speaker", render_turn(turn))
            for turn in transcript.turns
        ]
        content = "\n\n".join(paragraphs)
        if content:
            content += "\n"
        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=content,
                media_type="text/plain",
            )
        ]
