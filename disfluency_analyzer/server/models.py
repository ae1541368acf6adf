"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Each endpoint pair (request + response) has its own model. The
transcript itself is accepted as a free-form object: the engine's own
loader is permissive about unknown and malformed annotation records,
and a strict model here would reject documents the engine accepts.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- SpeechAnalysisModel field names equal SpeechAnalysis.to_dict() keys
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AnalysisRequest(BaseModel):
    """Transcript to analyze, with optional scoping."""

    transcript: Dict[str, Any] = Field(
        description="Transcript document with a 'segments' (or 'turns') array.",
    )
    speaker: Optional[str] = Field(
        default=None,
        description="Exact speaker label to scope every metric to.",
    )
    excluded_speakers: Optional[List[str]] = Field(
        default=None,
        description="Speaker labels left out of MLU metrics. Defaults to the configured examiner labels.",
    )
    formats: Optional[List[str]] = Field(
        default=None,
        description="Output format keys (see /formats) to render alongside the metrics.",
    )


class SplitRequest(BaseModel):
    """Split one turn of a transcript before word ``k``."""

    transcript: Dict[str, Any] = Field(description="Transcript document.")
    turn_index: int = Field(description="0-based index of the turn to split.")
    k: int = Field(description="Index of the first word of the second turn (0 < k < word count).")


class MergeRequest(BaseModel):
    """Merge one turn with the turn that follows it."""

    transcript: Dict[str, Any] = Field(description="Transcript document.")
    turn_index: int = Field(description="0-based index of the first turn to merge.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SpeechAnalysisModel(BaseModel):
    """All metrics for a transcript or one speaker of it."""

    speaker: Optional[str] = Field(default=None, description="Speaker filter, if any.")
    issueCounts: Dict[str, int] = Field(description="Annotation count per category.")
    totalWords: int = Field(description="All words, including fillers and punctuation.")
    totalDuration: float = Field(description="Summed turn durations in seconds.")
    speakingRate: float = Field(description="Valid words per minute.")
    errorRate: float = Field(description="Annotated issues per 100 valid words.")
    availableIssueTypes: List[str] = Field(description="Categories present, first-seen order.")
    turnCount: int = Field(description="Number of turns in scope.")
    speakerCount: int = Field(description="Number of distinct speakers in scope.")
    ntw: int = Field(description="Number of total (valid) words.")
    ndw: int = Field(description="Number of different words.")
    mluw: float = Field(description="Mean length of utterance in words.")
    mlum: float = Field(description="Mean length of utterance in morphemes.")
    pauseCount: int = Field(description="Number of pause annotations.")
    lexicalDiversity: float = Field(description="NDW / NTW.")
    morphemeWordRatio: float = Field(description="MLUm / MLUw.")


class RenderedOutput(BaseModel):
    """One file produced by a formatter."""

    key: str = Field(description="Format key that produced this output.")
    suffix: str = Field(description="File suffix, e.g. '-analysis.json'.")
    media_type: str = Field(description="MIME type of the content.")
    content: str = Field(description="The rendered file content.")


class AnalysisResponse(BaseModel):
    analysis: SpeechAnalysisModel = Field(description="Metrics for the requested scope.")
    speakers: Dict[str, SpeechAnalysisModel] = Field(
        description="Per-speaker metrics (only when no speaker filter was given).",
    )
    problems: List[str] = Field(
        description="Schema problems found in the document. Analysis still ran.",
    )
    outputs: List[RenderedOutput] = Field(
        default_factory=list,
        description="Rendered files for the requested formats, in request order.",
    )


class EditResponse(BaseModel):
    """Result of a structural edit.

    RULES:
    - changed is False when the edit was rejected as a no-op; the
      transcript is then returned unchanged
    - analysis is recomputed from scratch on the returned transcript
    """

    changed: bool = Field(description="False when the edit was rejected as a no-op.")
    transcript: Dict[str, Any] = Field(description="The (possibly edited) transcript document.")
    analysis: SpeechAnalysisModel = Field(description="Metrics recomputed on the returned transcript.")
    cross_boundary: int = Field(
        default=0,
        description="Annotations divided between the two new turns by a split.",
    )
    skipped: int = Field(
        default=0,
        description="Annotations that referenced no valid word and were not placed.",
    )


class FormatInfo(BaseModel):
    key: str = Field(description="Format identifier used in API requests.")
    name: str = Field(description="Human-readable format name.")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
