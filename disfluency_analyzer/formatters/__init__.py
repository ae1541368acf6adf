"""Output formatter registry.

WHY: The CLI and HTTP layers need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["analysis_json"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API requests)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from disfluency_analyzer.formatters.analysis import (
    AnalysisJSONFormatter,
    AnalysisReportFormatter,
)
from disfluency_analyzer.formatters.plain_text import PlainTextFormatter
from disfluency_analyzer.formatters.transcript_json import TranscriptJSONFormatter

if TYPE_CHECKING:
    from disfluency_analyzer.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "analysis_json": AnalysisJSONFormatter,
    "analysis_report": AnalysisReportFormatter,
    "plain_text": PlainTextFormatter,
    "transcript_json": TranscriptJSONFormatter,
}
