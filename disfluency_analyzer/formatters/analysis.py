"""Analysis formatters: machine-readable JSON and a clinician's text report.

WHY: The metrics are stored next to the transcript (JSON, consumed by the
review UI) and read by clinicians directly (text). Both must show the
numbers the engine computes, overall and per speaker.

HOW: Both formatters run analyze_transcript once for the whole
transcript and analyze_by_speaker for the per-speaker breakdown. The
JSON formatter dumps SpeechAnalysis.to_dict() values; the report
formatter lays the same values out as labelled lines.

RULES:
- JSON suffix "-analysis.json", media type "application/json"
- Report suffix "-analysis.txt", media type "text/plain"
- Floats in the report use two decimals; ratios three
- MLU values exclude examiner turns, overall and per speaker
"""

from __future__ import annotations

import json
from typing import List

from disfluency_analyzer.core.ir import Transcript
from disfluency_analyzer.core.metrics import (
    SpeechAnalysis,
    analyze_by_speaker,
    analyze_transcript,
)
from disfluency_analyzer.formatters.base import BaseFormatter, FormatterOutput


class AnalysisJSONFormatter(BaseFormatter):
    """Overall and per-speaker analysis as one JSON document."""

    @property
    def name(self) -> str:
        return "Analysis JSON"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        document = {
            "overall": analyze_transcript(transcript).to_dict(),
            "speakers": {
                label: analysis.to_dict()
                for label, analysis in analyze_by_speaker(transcript).items()
            },
        }
        return [
            FormatterOutput(
                suffix="-analysis.json",
                content=json.dumps(document, indent=2, ensure_ascii=False) + "\n",
                media_type="application/json",
            )
        ]


def _report_block(title: str, analysis: SpeechAnalysis) -> List[str]:
    lines = [
        title,
        "=" * len(title),
        "NTW (total words):           {}".format(analysis.ntw),
        "NDW (different words):       {}".format(analysis.ndw),
        "MLUw (words/utterance):      {:.2f}".format(analysis.mluw),
        "MLUm (morphemes/utterance):  {:.2f}".format(analysis.mlum),
        "Pauses:                      {}".format(analysis.pause_count),
        "NDW/NTW ratio:               {:.3f}".format(analysis.lexical_diversity),
        "MLUm/MLUw ratio:             {:.3f}".format(analysis.morpheme_word_ratio),
        "Speaking rate (words/min):   {:.2f}".format(analysis.speaking_rate),
        "Error rate (per 100 words):  {:.2f}".format(analysis.error_rate),
        "Turns: {}  Speakers: {}  Duration: {:.2f}s".format(
            analysis.turn_count, analysis.speaker_count, analysis.total_duration,
        ),
        "Issues:",
    ]
    for category, count in analysis.issue_counts.as_dict().items():
        lines.append("  {:<20} {}".format(category, count))
    return lines


class AnalysisReportFormatter(BaseFormatter):
    """Plain-text metric report, overall first, then one block per speaker."""

    @property
    def name(self) -> str:
        return "Analysis Report"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        blocks = [_report_block("Overall", analyze_transcript(transcript))]
        for label, analysis in analyze_by_speaker(transcript).items():
            blocks.append(_report_block("Speaker: {}".format(label), analysis))
        content = "\n\n".join("\n".join(block) for block in blocks) + "\n"
        return [
            FormatterOutput(
                suffix="-analysis.txt",
                content=content,
                media_type="text/plain",
            )
        ]
