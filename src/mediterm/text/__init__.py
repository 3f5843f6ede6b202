"""Network-free text utilities: token estimates, chunking, term segmentation.

Everything here is synchronous and deterministic, so front-ends can call it
on every keystroke for live hints and highlighting.
"""

from __future__ import annotations

from .chunker import calculate_chunk_size, split_into_chunks
from .language import LANGUAGE_NAMES, detect_source_side
from .segmenter import TermMatcher, detected_terms, segment, segments_from_alignments
from .tokens import estimate_tokens

__all__ = [
    "estimate_tokens",
    "split_into_chunks",
    "calculate_chunk_size",
    "segment",
    "segments_from_alignments",
    "detected_terms",
    "TermMatcher",
    "detect_source_side",
    "LANGUAGE_NAMES",
]
