"""FastAPI application exposing transcript analysis and structural edits.

WHY: The review UI and batch tools need the engine over HTTP: post a
transcript, get its metrics back; post a split or merge, get the edited
transcript and freshly computed metrics. FastAPI provides request
validation and OpenAPI documentation.

HOW: Each request parses the posted document into an immutable IR
snapshot, runs the engine, and serializes the result. Nothing is stored
between requests.

RULES:
- Documents that are not transcripts at all → 400 with ErrorResponse
- Unknown keys in AnalysisRequest.formats → 400, checked before parsing
- A document is schema-validated once per request
- Rejected edits are not errors: 200 with changed=False
- Metrics are always recomputed from scratch on the returned transcript
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException

from disfluency_analyzer import __version__
from disfluency_analyzer.core.editing import merge_turn_with_next, split_turn_at
from disfluency_analyzer.core.ir import Transcript
from disfluency_analyzer.core.loader import (
    TranscriptFormatError,
    parse_transcript,
    transcript_to_dict,
    validate_document,
)
from disfluency_analyzer.core.metrics import analyze_by_speaker, analyze_transcript
from disfluency_analyzer.formatters import FORMATTERS
from disfluency_analyzer.server.models import (
    AnalysisRequest,
    AnalysisResponse,
    EditResponse,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    MergeRequest,
    RenderedOutput,
    SpeechAnalysisModel,
    SplitRequest,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Disfluency Analyzer API",
    description=(
        "Clinical language metrics (NTW, NDW, MLUw, MLUm, pauses, issue counts) "
        "and annotation-preserving turn edits for annotated speech transcripts."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_or_400(document: Dict[str, Any], problems: Optional[List[str]] = None) -> Transcript:
    try:
        return parse_transcript(document, problems)
    except TranscriptFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _check_formats(keys: Optional[List[str]]) -> List[str]:
    if not keys:
        return []
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            raise HTTPException(
                status_code=400,
                detail="Unknown output format '{}'. Available: {}".format(key, available),
            )
    return keys


def _render(transcript: Transcript, keys: List[str]) -> List[RenderedOutput]:
    rendered = []  # type: List[RenderedOutput]
    for key in keys:
        for output in FORMATTERS[key]().format(transcript):
            rendered.append(RenderedOutput(
                key=key,
                suffix=output.suffix,
                media_type=output.media_type,
                content=output.content,
            ))
    return rendered


def _analysis_model(transcript: Transcript) -> SpeechAnalysisModel:
    return SpeechAnalysisModel(**analyze_transcript(transcript).to_dict())


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post(
    "/analysis",
    response_model=AnalysisResponse,
    tags=["analysis"],
    summary="Compute language metrics for a transcript",
    responses={400: {"model": ErrorResponse, "description": "Not a transcript document, or unknown format"}},
)
def analyze(request: AnalysisRequest) -> AnalysisResponse:
    format_keys = _check_formats(request.formats)
    problems = validate_document(request.transcript)
    transcript = _parse_or_400(request.transcript, problems)
    analysis = analyze_transcript(transcript, request.speaker, request.excluded_speakers)
    speakers = {}  # type: Dict[str, SpeechAnalysisModel]
    if request.speaker is None:
        speakers = {
            label: SpeechAnalysisModel(**result.to_dict())
            for label, result in analyze_by_speaker(transcript).items()
        }
    return AnalysisResponse(
        analysis=SpeechAnalysisModel(**analysis.to_dict()),
        speakers=speakers,
        problems=problems,
        outputs=_render(transcript, format_keys),
    )


@app.post(
    "/split",
    response_model=EditResponse,
    tags=["edits"],
    summary="Split a turn into two",
    responses={400: {"model": ErrorResponse, "description": "Not a transcript document"}},
)
def split(request: SplitRequest) -> EditResponse:
    transcript = _parse_or_400(request.transcript)
    outcome = split_turn_at(transcript, request.turn_index, request.k)
    if outcome is None:
        return EditResponse(
            changed=False,
            transcript=transcript_to_dict(transcript),
            analysis=_analysis_model(transcript),
        )
    edited, result = outcome
    logger.info(
        "Split turn %d at %d (%d cross-boundary, %d skipped)",
        request.turn_index, request.k, len(result.cross_boundary), len(result.skipped),
    )
    return EditResponse(
        changed=True,
        transcript=transcript_to_dict(edited),
        analysis=_analysis_model(edited),
        cross_boundary=len(result.cross_boundary),
        skipped=len(result.skipped),
    )


@app.post(
    "/merge",
    response_model=EditResponse,
    tags=["edits"],
    summary="Merge a turn with the next one",
    responses={400: {"model": ErrorResponse, "description": "Not a transcript document"}},
)
def merge(request: MergeRequest) -> EditResponse:
    transcript = _parse_or_400(request.transcript)
    edited = merge_turn_with_next(transcript, request.turn_index)
    if edited is None:
        return EditResponse(
            changed=False,
            transcript=transcript_to_dict(transcript),
            analysis=_analysis_model(transcript),
        )
    return EditResponse(
        changed=True,
        transcript=transcript_to_dict(edited),
        analysis=_analysis_model(edited),
    )


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["meta"],
    summary="List available report formats",
)
def list_formats() -> List[FormatInfo]:
    return [FormatInfo(key=key, name=cls().name) for key, cls in FORMATTERS.items()]


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["meta"],
    summary="Health check",
)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)
