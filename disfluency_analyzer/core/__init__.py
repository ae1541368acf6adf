"""Core IR, normalization, segmentation, metrics, and edit modules.

WHY: The core package is the analysis engine proper - everything the
CLI, HTTP service, and formatters need, with no I/O beyond reading a
transcript document.

HOW: ir.py defines the data structures, loader.py builds them from the
upstream JSON document, words.py holds the matching primitives,
segmenter.py cuts turns into utterances, metrics.py and issues.py
compute the numbers, splitter.py and editing.py perform structural
edits.

RULES:
- IR dataclasses are the contract - change with care
- Engine functions are pure: same snapshot in, same result out
- Malformed annotations are skipped and logged, never raised
"""
