"""Tests for the command-line interface.

WHY: Batch users run the analyzer from scripts. Exit codes, output file
names and the stderr/stdout split are what those scripts depend on.

HOW: Call main(argv) directly with files in tmp_path; read back what
was written and what was printed (capsys).

RULES:
- Errors exit 1, rejected splits exit 2
- Nothing but reports is written to disk; status goes to stderr
"""

import json

import pytest

from disfluency_analyzer.cli import build_parser, main


@pytest.fixture
def transcript_file(tmp_path, sample_document):
    path = tmp_path / "session.json"
    path.write_text(json.dumps(sample_document), encoding="utf-8")
    return path


class TestAnalyzeCommand:
    """analyze writes one report per format next to the input, or in --output-dir."""

    def test_writes_all_formats(self, transcript_file, capsys):
        main(["analyze", str(transcript_file)])
        folder = transcript_file.parent
        for name in (
            "session-analysis.json",
            "session-analysis.txt",
            "session-transcript.txt",
            "session-transcript.json",
        ):
            assert (folder / name).is_file(), name
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "NTW=13 NDW=12" in captured.err

    def test_selected_formats_and_output_dir(self, transcript_file, tmp_path):
        out = tmp_path / "reports"
        out.mkdir()
        main(["analyze", str(transcript_file), "--formats", "analysis_json", "--output-dir", str(out)])
        assert [p.name for p in out.iterdir()] == ["session-analysis.json"]

    def test_conflicting_names_get_counter(self, transcript_file):
        main(["analyze", str(transcript_file), "--formats", "analysis_json"])
        main(["analyze", str(transcript_file), "--formats", "analysis_json"])
        assert (transcript_file.parent / "session-analysis-2.json").is_file()

    def test_speaker_filter(self, transcript_file, capsys):
        main(["analyze", str(transcript_file), "--speaker", "Child", "--formats", "plain_text"])
        assert "NTW=10" in capsys.readouterr().err

    def test_unknown_format(self, transcript_file, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["analyze", str(transcript_file), "--formats", "docx"])
        assert exc.value.code == 1
        assert "Unknown format 'docx'" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["analyze", str(tmp_path / "nope.json")])
        assert exc.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"items": []}', encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["analyze", str(path)])
        assert exc.value.code == 1


class TestSplitCommand:
    """split writes the edited transcript and its recomputed analysis."""

    def test_split_writes_edited_transcript(self, transcript_file):
        main(["split", str(transcript_file), "--turn", "2", "--at", "2"])
        edited = json.loads((transcript_file.parent / "session-split-transcript.json").read_text(encoding="utf-8"))
        assert len(edited["segments"]) == 4
        analysis = json.loads((transcript_file.parent / "session-split-analysis.json").read_text(encoding="utf-8"))
        assert analysis["overall"]["turnCount"] == 4

    def test_rejected_split_exits_2(self, transcript_file, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["split", str(transcript_file), "--turn", "0", "--at", "3"])
        assert exc.value.code == 2
        assert "No change made" in capsys.readouterr().err
        assert not (transcript_file.parent / "session-split-transcript.json").exists()

    def test_cross_boundary_warning(self, transcript_file, capsys):
        main(["split", str(transcript_file), "--turn", "2", "--at", "1"])
        assert "spanned the split" in capsys.readouterr().err


class TestParser:
    """Argument defaults and required subcommand."""

    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        assert args.host == "127.0.0.1"
        assert args.port == 8000

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
