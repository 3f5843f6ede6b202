"""Step agents of the translation pipeline.

Each agent is one completion call with its own prompt:

- :func:`run_draft`   first translation, glossary injected
- :func:`run_review`  free-text critique of a draft
- :func:`run_polish`  revised translation from draft + critique
- :func:`run_align`   term spans in source and translation
"""

from __future__ import annotations

from .align_agent import parse_alignments, run_align
from .draft_agent import run_draft
from .output import extract_json, strip_markdown_fences
from .polish_agent import run_polish
from .review_agent import run_review

__all__ = [
    "run_draft",
    "run_review",
    "run_polish",
    "run_align",
    "parse_alignments",
    "strip_markdown_fences",
    "extract_json",
]
