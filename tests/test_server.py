"""Tests for the FastAPI analysis and edit API.

WHY: The review UI talks to the engine only through these endpoints.
Each must return the engine's numbers, treat rejected edits as no-ops
rather than errors, and reject documents that are not transcripts.

HOW: FastAPI TestClient (synchronous, in-process) against the module
level app. The service is stateless, so no fixtures need resetting.

RULES:
- All tests use the FastAPI TestClient
- Tests cover: happy paths, 400 bad documents, 422 bad requests,
  rejected edits (200 with changed=False)
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from disfluency_analyzer import __version__
from disfluency_analyzer.core import loader
from disfluency_analyzer.server import app as server_app
from disfluency_analyzer.server.app import app


@pytest.fixture
def client():
    return TestClient(app)


class TestAnalysisEndpoint:
    """POST /analysis returns overall and per-speaker metrics."""

    def test_overall_and_speakers(self, client, sample_document):
        response = client.post("/analysis", json={"transcript": sample_document})
        assert response.status_code == 200
        body = response.json()
        assert body["analysis"]["ntw"] == 13
        assert body["analysis"]["mluw"] == pytest.approx(5.0)
        assert list(body["speakers"]) == ["Examiner", "Child"]
        assert body["problems"] == []

    def test_speaker_filter(self, client, sample_document):
        response = client.post("/analysis", json={"transcript": sample_document, "speaker": "Child"})
        body = response.json()
        assert body["analysis"]["speaker"] == "Child"
        assert body["analysis"]["ntw"] == 10
        assert body["speakers"] == {}

    def test_excluded_speakers(self, client, sample_document):
        response = client.post(
            "/analysis",
            json={"transcript": sample_document, "excluded_speakers": []},
        )
        # Examiner utterance (3 words) now counts: (3 + 5 + 5) / 3
        assert response.json()["analysis"]["mluw"] == pytest.approx(13 / 3)

    def test_problems_reported(self, client):
        document = {"segments": [{"speaker": "A", "words": [{"word": "hi"}]}]}
        body = client.post("/analysis", json={"transcript": document}).json()
        assert body["problems"]
        assert body["analysis"]["ntw"] == 1

    def test_not_a_transcript(self, client):
        response = client.post("/analysis", json={"transcript": {"items": []}})
        assert response.status_code == 400
        assert "segments" in response.json()["detail"]

    def test_missing_transcript_field(self, client):
        assert client.post("/analysis", json={}).status_code == 422

    def test_examiner_scope_has_no_mlu(self, client, sample_document):
        body = client.post("/analysis", json={"transcript": sample_document, "speaker": "Examiner"}).json()
        assert body["analysis"]["ntw"] == 3
        assert body["analysis"]["mluw"] == 0.0
        assert body["analysis"]["mlum"] == 0.0

    def test_document_validated_once(self, client, sample_document, monkeypatch):
        calls = []
        original = loader.validate_document

        def counting(data):
            calls.append(data)
            return original(data)

        monkeypatch.setattr(loader, "validate_document", counting)
        monkeypatch.setattr(server_app, "validate_document", counting)
        assert client.post("/analysis", json={"transcript": sample_document}).status_code == 200
        assert len(calls) == 1


class TestAnalysisOutputs:
    """Formats listed by /formats can be rendered in the /analysis response."""

    def test_no_formats_by_default(self, client, sample_document):
        body = client.post("/analysis", json={"transcript": sample_document}).json()
        assert body["outputs"] == []

    def test_rendered_outputs(self, client, sample_document):
        response = client.post(
            "/analysis",
            json={"transcript": sample_document, "formats": ["plain_text", "analysis_json"]},
        )
        assert response.status_code == 200
        outputs = response.json()["outputs"]
        assert [o["key"] for o in outputs] == ["plain_text", "analysis_json"]
        assert outputs[0]["suffix"] == "-transcript.txt"
        assert outputs[0]["content"].startswith("Examiner:\nWhat happened next?\n")
        assert outputs[1]["media_type"] == "application/json"
        assert json.loads(outputs[1]["content"])["overall"]["ntw"] == 13

    def test_every_listed_format_accepted(self, client, sample_document):
        keys = [f["key"] for f in client.get("/formats").json()]
        response = client.post("/analysis", json={"transcript": sample_document, "formats": keys})
        assert response.status_code == 200
        assert {o["key"] for o in response.json()["outputs"]} == set(keys)

    def test_unknown_format(self, client, sample_document):
        response = client.post("/analysis", json={"transcript": sample_document, "formats": ["docx"]})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert "Unknown output format 'docx'" in detail
        assert "plain_text" in detail


class TestSplitEndpoint:
    """POST /split returns the edited transcript and fresh metrics."""

    def test_split(self, client, sample_document):
        response = client.post("/split", json={"transcript": sample_document, "turn_index": 2, "k": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["changed"] is True
        segments = body["transcript"]["segments"]
        assert len(segments) == 4
        assert [w["word"] for w in segments[3]["words"]] == ["want", "to", "go."]
        assert body["analysis"]["turnCount"] == 4
        assert body["analysis"]["ntw"] == 13

    def test_cross_boundary_count(self, client, sample_document):
        response = client.post("/split", json={"transcript": sample_document, "turn_index": 2, "k": 1})
        assert response.json()["cross_boundary"] == 1

    def test_rejected_split(self, client, sample_document):
        response = client.post("/split", json={"transcript": sample_document, "turn_index": 0, "k": 0})
        assert response.status_code == 200
        body = response.json()
        assert body["changed"] is False
        assert len(body["transcript"]["segments"]) == 3


class TestMergeEndpoint:
    """POST /merge joins a turn with the next one."""

    def test_merge(self, client, sample_document):
        body = client.post("/merge", json={"transcript": sample_document, "turn_index": 1}).json()
        assert body["changed"] is True
        assert len(body["transcript"]["segments"]) == 2
        assert body["analysis"]["pauseCount"] == 3

    def test_rejected_merge(self, client, sample_document):
        body = client.post("/merge", json={"transcript": sample_document, "turn_index": 2}).json()
        assert body["changed"] is False


class TestMetaEndpoints:
    """Format listing and health check."""

    def test_formats(self, client):
        formats = client.get("/formats").json()
        assert {f["key"] for f in formats} == {"analysis_json", "analysis_report", "plain_text", "transcript_json"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "version": __version__}
