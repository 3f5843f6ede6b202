"""
Term segmenter: locate dictionary terms in a text, collision-free.

Given a text, a list of :class:`Term` objects and a side (``"a"`` or ``"b"``),
:func:`segment` returns an ordered list of :class:`TextSegment` objects that
tile the text exactly: plain runs interleaved with term matches.

Matching rules
--------------
- **Strong** keys: each term's primary label on the side plus every alias.
  **Weak** keys: each term's core-concept string on the side, only when the
  normalized key is not already a strong key. On a key collision the term
  that comes first in the dictionary wins.
- Keys match case-insensitively, and any run of whitespace in the text
  matches a single space in the key. On side ``"b"`` (alphabetic language)
  keys are anchored on word boundaries where they start/end with a word
  character and may carry a trailing plural ``s``/``es``.
- All candidate spans are collected, including overlapping ones. They are
  accepted greedily, longest first, leftmost on ties, then in key order, and
  only if none of their characters is already covered. Strong candidates are
  resolved before weak ones, so a weak match can only claim characters no
  strong match wanted.

The result depends on nothing but ``(text, terms, side)``; calling it twice
yields identical segments, occurrence indices included. That lets callers
re-render highlights without going back to the completion service.

Implementation
--------------
Each key compiles to its own look-ahead pattern (so overlapping occurrences
are all reported). Case folding is left to the regex engine, which also
equates characters such as the micro sign and Greek mu.
A :class:`TermMatcher` holds the compiled keys and can be reused across
calls; :class:`~mediterm.core.dictionary.TermDictionary` caches one per side.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from mediterm.core.contracts.alignment import TermAlignment
from mediterm.core.contracts.segment import MatchKind, TextSegment
from mediterm.core.contracts.term import Side, Term, normalize_key
from mediterm.core.dictionary import TermDictionary

_WORD_CHAR = re.compile(r"\w")
_PLURAL_SUFFIX = r"(?:e?s)?"


@dataclass(frozen=True, slots=True)
class _CompiledKey:
    """One normalized lookup key, ready to scan."""

    key: str
    term: Term
    pattern: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class _Candidate:
    start: int
    end: int
    rank: int
    term: Term

    @property
    def length(self) -> int:
        return self.end - self.start


def _compile_key(key: str, term: Term, side: Side) -> _CompiledKey:
    """Build the scanning pattern for a normalized ``key``."""
    words = key.split(" ")
    body = r"\s+".join(re.escape(word) for word in words)
    if side == "b":
        if _WORD_CHAR.match(key[0]):
            body = r"\b" + body
        if _WORD_CHAR.match(key[-1]):
            body = body + _PLURAL_SUFFIX + r"\b"
    # Zero-width look-ahead so finditer reports overlapping occurrences.
    pattern = re.compile(f"(?=({body}))", re.IGNORECASE)
    return _CompiledKey(key=key, term=term, pattern=pattern)


def _build_maps(terms: Iterable[Term], side: Side) -> tuple[dict[str, Term], dict[str, Term]]:
    strong: dict[str, Term] = {}
    for term in terms:
        for raw in (term.label(side), *term.aliases):
            key = normalize_key(raw)
            if key and key not in strong:
                strong[key] = term

    weak: dict[str, Term] = {}
    for term in terms:
        core = term.core(side)
        key = normalize_key(core) if core else ""
        if key and key not in strong and key not in weak:
            weak[key] = term
    return strong, weak


def _accept(candidates: list[_Candidate], covered: bytearray) -> list[_Candidate]:
    """Greedy longest-first acceptance over an explicit coverage mask."""
    accepted: list[_Candidate] = []
    for cand in sorted(candidates, key=lambda c: (-c.length, c.start, c.rank)):
        if 1 in covered[cand.start : cand.end]:
            continue
        covered[cand.start : cand.end] = b"\x01" * cand.length
        accepted.append(cand)
    return accepted


def _emit(text: str, matches: list[tuple[_Candidate, MatchKind]]) -> list[TextSegment]:
    """Tile ``text`` with plain gaps and the accepted matches."""
    segments: list[TextSegment] = []
    occurrences: dict[str, int] = {}
    cursor = 0
    for cand, kind in sorted(matches, key=lambda item: item[0].start):
        if cand.start > cursor:
            segments.append(TextSegment(text=text[cursor : cand.start], start=cursor, end=cand.start))
        index = occurrences.get(cand.term.id, 0)
        occurrences[cand.term.id] = index + 1
        segments.append(
            TextSegment(
                text=text[cand.start : cand.end],
                start=cand.start,
                end=cand.end,
                term=cand.term,
                kind=kind,
                occurrence=index,
            )
        )
        cursor = cand.end
    if cursor < len(text):
        segments.append(TextSegment(text=text[cursor:], start=cursor, end=len(text)))
    return segments


class TermMatcher:
    """Compiled strong/weak key sets for one dictionary and one side."""

    def __init__(self, terms: Iterable[Term], side: Side) -> None:
        self.side: Side = side
        strong, weak = _build_maps(list(terms), side)
        self._strong = [_compile_key(k, t, side) for k, t in strong.items()]
        self._weak = [_compile_key(k, t, side) for k, t in weak.items()]

    def __len__(self) -> int:
        return len(self._strong) + len(self._weak)

    @staticmethod
    def _scan(text: str, keys: list[_CompiledKey]) -> list[_Candidate]:
        found: list[_Candidate] = []
        for rank, compiled in enumerate(keys):
            for m in compiled.pattern.finditer(text):
                found.append(_Candidate(m.start(1), m.end(1), rank, compiled.term))
        return found

    def segment(self, text: str) -> list[TextSegment]:
        """Segment ``text`` against the compiled keys."""
        if not text:
            return []
        if not self._strong and not self._weak:
            return [TextSegment(text=text, start=0, end=len(text))]

        covered = bytearray(len(text))
        strong = _accept(self._scan(text, self._strong), covered)
        weak = _accept(self._scan(text, self._weak), covered)

        matches: list[tuple[_Candidate, MatchKind]] = [(c, "strong") for c in strong]
        matches.extend((c, "weak") for c in weak)
        return _emit(text, matches)


def segment(text: str, terms: Sequence[Term], mode: Side) -> list[TextSegment]:
    """Return the collision-free term segmentation of ``text``.

    Parameters
    ----------
    text:
        Text to scan.
    terms:
        Dictionary to match against. A :class:`TermDictionary` reuses its
        cached matcher; any other sequence is compiled on the fly.
    mode:
        ``"a"`` matches language-A fields, ``"b"`` language-B fields.

    Returns
    -------
    list[TextSegment]
        Segments whose texts concatenate back to ``text``.
    """
    if isinstance(terms, TermDictionary):
        return terms.matcher(mode).segment(text)
    return TermMatcher(terms, mode).segment(text)


def segments_from_alignments(
    text: str,
    alignments: Iterable[TermAlignment],
    which: Literal["source", "target"],
    dictionary: TermDictionary,
) -> list[TextSegment]:
    """Build segments from alignment spans instead of pattern matching.

    Spans that fall outside ``text``, are empty, reference unknown terms, or
    overlap a longer span are dropped. Every surviving span becomes a strong
    segment.
    """
    if not text:
        return []
    candidates: list[_Candidate] = []
    for rank, alignment in enumerate(alignments):
        term = dictionary.get(alignment.term_id)
        if term is None:
            continue
        spans = alignment.source_spans if which == "source" else alignment.target_spans
        for start, end in spans:
            if 0 <= start < end <= len(text):
                candidates.append(_Candidate(start, end, rank, term))

    accepted = _accept(candidates, bytearray(len(text)))
    return _emit(text, [(c, "strong") for c in accepted])


def detected_terms(segments: Iterable[TextSegment]) -> list[Term]:
    """Return the distinct matched terms of ``segments`` in first-seen order."""
    seen: dict[str, Term] = {}
    for seg in segments:
        if seg.term is not None and seg.term.id not in seen:
            seen[seg.term.id] = seg.term
    return list(seen.values())


__all__ = ["segment", "TermMatcher", "segments_from_alignments", "detected_terms"]
