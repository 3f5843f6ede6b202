"""Pipeline entry points for MediTerm.

- :class:`Translator` / :func:`translate`: term-aware chunked translation,
  implemented in ``translation.py``.
- :func:`build_glossary`: strong-match glossary used by the pipeline.
"""

from __future__ import annotations

from .glossary import build_glossary, filter_glossary, relevant_terms
from .translation import CHUNK_SEPARATOR, Translator, translate

__all__ = [
    "Translator",
    "translate",
    "build_glossary",
    "filter_glossary",
    "relevant_terms",
    "CHUNK_SEPARATOR",
]
