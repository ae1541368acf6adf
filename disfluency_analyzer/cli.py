"""Command-line interface for the Disfluency Analyzer.

WHY: Clinicians and researchers need to run the analysis on exported
transcript files in batch, save reports next to them, and fix turn
boundaries without a UI. The CLI wires together loading, analysis,
structural edits, the pluggable formatters, and the HTTP service.

HOW: argparse with three subcommands:
  analyze  - load a transcript, run the selected formatters, save output
  split    - split one turn, save the edited transcript and its analysis
  serve    - run the FastAPI app under uvicorn
Status messages go to stderr; output files are saved next to the source
(or to --output-dir).

RULES:
- Status output goes to stderr (not stdout)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts
  (-analysis-2.json)
- A rejected split exits 2 without writing anything
- Invalid input exits 1 with "Error: ..." on stderr
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from disfluency_analyzer.config import LOG_LEVEL, SERVER_HOST, SERVER_PORT
from disfluency_analyzer.core.editing import split_turn_at
from disfluency_analyzer.core.ir import Transcript
from disfluency_analyzer.core.loader import TranscriptFormatError, load_transcript
from disfluency_analyzer.core.metrics import analyze_transcript
from disfluency_analyzer.formatters import FORMATTERS
from disfluency_analyzer.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> NoReturn:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Return {stem}{suffix}, or the first free {stem}{name}-N{ext} (N >= 2)."""
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    # "-analysis.json" → ("-analysis", ".json")
    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _load(input_file: str) -> Transcript:
    input_path = Path(input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))
    try:
        return load_transcript(input_path)
    except TranscriptFormatError as e:
        _fail(str(e))


def _output_dir(args: argparse.Namespace) -> Path:
    input_path = Path(args.input_file).resolve()
    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))
    return output_dir


def _format_keys(formats: Optional[str]) -> List[str]:
    if not formats:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in formats.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    return keys


def _write_formats(transcript: Transcript, keys: List[str], stem: str, output_dir: Path) -> List[Path]:
    saved = []  # type: List[Path]
    for key in keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(transcript):
            path = _save_output(output, stem, output_dir)
            saved.append(path)
            _status("  Saved: {}".format(path.name))
    return saved


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_analyze(args: argparse.Namespace) -> None:
    keys = _format_keys(args.formats)
    output_dir = _output_dir(args)
    transcript = _load(args.input_file)
    stem = Path(args.input_file).stem

    analysis = analyze_transcript(transcript, args.speaker)
    _status("{} turns, {} speakers".format(len(transcript.turns), len(transcript.speakers)))
    _status("NTW={} NDW={} MLUw={:.2f} MLUm={:.2f} pauses={}".format(
        analysis.ntw, analysis.ndw, analysis.mluw, analysis.mlum, analysis.pause_count,
    ))

    _status("Formatting output...")
    saved = _write_formats(transcript, keys, stem, output_dir)
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))


def _cmd_split(args: argparse.Namespace) -> None:
    output_dir = _output_dir(args)
    transcript = _load(args.input_file)

    outcome = split_turn_at(transcript, args.turn, args.at)
    if outcome is None:
        _status("No change made: cannot split turn {} at word {}.".format(args.turn, args.at))
        sys.exit(2)
    edited, result = outcome

    _status("Split turn {} at word {} ({} + {} words)".format(
        args.turn, args.at, len(result.first_turn.words), len(result.second_turn.words),
    ))
    if result.cross_boundary:
        _status("  Warning: {} annotation(s) spanned the split and were divided".format(
            len(result.cross_boundary),
        ))
    if result.skipped:
        _status("  Warning: {} annotation(s) referenced no word and were dropped".format(
            len(result.skipped),
        ))

    stem = "{}-split".format(Path(args.input_file).stem)
    saved = _write_formats(edited, ["transcript_json", "analysis_json"], stem, output_dir)
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))


def _cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run(
        "disfluency_analyzer.server.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser (separate from main() for testing)."""
    parser = argparse.ArgumentParser(
        prog="disfluency_analyzer",
        description="Compute clinical language metrics for annotated speech transcripts "
                    "and edit turn boundaries without losing annotations.",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for engine diagnostics (default: %(default)s).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze a transcript and save reports.")
    analyze.add_argument("input_file", help="Path to the transcript JSON file.")
    analyze.add_argument(
        "--speaker",
        default=None,
        help="Only count turns whose speaker label equals this value exactly.",
    )
    analyze.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )
    analyze.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    analyze.set_defaults(handler=_cmd_analyze)

    split = subparsers.add_parser("split", help="Split one turn into two.")
    split.add_argument("input_file", help="Path to the transcript JSON file.")
    split.add_argument("--turn", type=int, required=True, help="0-based index of the turn to split.")
    split.add_argument(
        "--at", type=int, required=True,
        help="Index of the first word of the new second turn.",
    )
    split.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    split.set_defaults(handler=_cmd_split)

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=SERVER_HOST, help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=SERVER_PORT, help="Port (default: %(default)s).")
    serve.set_defaults(handler=_cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m disfluency_analyzer`` and the console script.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.handler(args)


if __name__ == "__main__":
    main()
