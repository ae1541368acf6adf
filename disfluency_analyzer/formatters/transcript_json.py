"""Transcript JSON formatter - the edited transcript in upstream format.

WHY: After a split, merge, or word edit the corrected transcript has to
be saved and re-imported by the same tools that produced it, so it is
written back with the upstream key names.

RULES:
- Output suffix: "-transcript.json"
- Media type: "application/json"
- Output conforms to core/transcript_schema.json
"""

from __future__ import annotations

import json
from typing import List

from disfluency_analyzer.core.ir import Transcript
from disfluency_analyzer.core.loader import transcript_to_dict
from disfluency_analyzer.formatters.base import BaseFormatter, FormatterOutput


class TranscriptJSONFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "Transcript JSON"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        content = json.dumps(transcript_to_dict(transcript), indent=2, ensure_ascii=False)
        return [
            FormatterOutput(
                suffix="-transcript.json",
                content=content + "\n",
                media_type="application/json",
            )
        ]
