"""Disfluency Analyzer - annotated transcript metrics and structural edits.

WHY: Speech-language assessment transcripts arrive from an upstream
analysis service with words, timings, and disfluency annotations
(pauses, fillers, repetitions, mispronunciations, morphemes, morpheme
omissions, revisions, utterance errors). Clinicians need standard
language metrics (NTW, NDW, MLUw, MLUm) computed consistently, and they
need to correct turn boundaries without corrupting the annotations.

HOW: Three-stage pipeline - load (JSON document to IR), analyze (pure
metric functions over the IR), format (pluggable report writers).
Structural edits (split, merge, word edits) return new IR values that
flow back through analysis from scratch.

RULES:
- All analysis consumes the same Transcript IR
- The engine never mutates its input; edits return new values
- Metrics are recomputed in full after every edit, never incrementally
"""

__version__ = "0.1.0"
