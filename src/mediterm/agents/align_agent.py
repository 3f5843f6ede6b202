"""
Align agent: ask the model where each relevant term sits in both texts.

The model receives the source text, the final translation and the dictionary
terms relevant to this text (id plus both labels), and must return a JSON
array::

    [
      {"term_id": "t1", "source_spans": [[0, 2]], "target_spans": [[0, 11]]}
    ]

Spans are half-open character offsets. Model output is parsed defensively:

- Markdown fences and prose around the JSON are tolerated.
- A ``{"alignments": [...]}`` wrapper and camelCase keys are accepted.
- Entries for unknown term ids, and spans that are malformed, empty or out of
  range for their text, are dropped.

Output that holds no JSON array at all raises :class:`AlignmentParseError`
inside :func:`parse_alignments`; :func:`run_align` recovers from it by
returning an empty list, so a bad alignment never fails a translation.
"""

from __future__ import annotations

import json
from collections.abc import Collection, Mapping, Sequence
from typing import Any

from mediterm.core.contracts.alignment import Span, TermAlignment
from mediterm.core.contracts.term import Term
from mediterm.core.errors import AlignmentParseError
from mediterm.core.settings import get_logger
from mediterm.llm.models import CompletionConfig
from mediterm.llm.service import CompletionService

from .output import extract_json

logger = get_logger(__name__)

ALIGN_INSTRUCTION = """You are a terminology alignment engine for medical translations.

You receive a source text, its translation, and a list of dictionary terms.
For every listed term that occurs in the source text, locate it in the source
and locate the phrase that translates it in the translation.

Output format (VERY IMPORTANT):
Return only a JSON array. Each item has this structure:
{"term_id": "<id from the list>", "source_spans": [[start, end]], "target_spans": [[start, end]]}

Rules:
- Offsets are 0-based character indices into the exact texts given; "end" is exclusive.
- List one span per occurrence, in reading order.
- Use only term ids from the list. Omit terms that do not occur.
- Do not wrap the JSON in backticks or Markdown."""


def build_align_prompt(source_text: str, target_text: str, terms: Sequence[Term]) -> str:
    """Render the user prompt listing the relevant terms as JSON lines."""
    term_lines = "\n".join(
        json.dumps({"id": t.id, "a": t.label_a, "b": t.label_b}, ensure_ascii=False)
        for t in terms
    )
    return (
        f"Source Text:\n{source_text}\n\n"
        f"Translation:\n{target_text}\n\n"
        f"Terms:\n{term_lines}\n\n"
        "Return the alignment JSON array:"
    )


def _parse_span(raw: Any, limit: int) -> Span | None:
    if isinstance(raw, Mapping):
        raw = (raw.get("start"), raw.get("end"))
    if not isinstance(raw, Sequence) or isinstance(raw, str) or len(raw) != 2:
        return None
    start, end = raw
    if isinstance(start, bool) or isinstance(end, bool):
        return None
    if not isinstance(start, int) or not isinstance(end, int):
        return None
    if not 0 <= start < end <= limit:
        return None
    return (start, end)


def _parse_spans(raw: Any, limit: int) -> list[Span]:
    if not isinstance(raw, list):
        return []
    spans: list[Span] = []
    for item in raw:
        span = _parse_span(item, limit)
        if span is not None:
            spans.append(span)
    return spans


def parse_alignments(
    raw: str,
    *,
    known_ids: Collection[str],
    source_length: int,
    target_length: int,
) -> list[TermAlignment]:
    """Parse model output into alignments, dropping anything unusable.

    Raises
    ------
    AlignmentParseError
        If ``raw`` holds no JSON array of alignment objects.
    """
    try:
        payload: Any = extract_json(raw)
    except ValueError as exc:
        raise AlignmentParseError(f"align step returned no JSON: {exc}") from exc

    if isinstance(payload, Mapping):
        payload = payload.get("alignments")
    if not isinstance(payload, list):
        raise AlignmentParseError("align step expected a JSON array of alignments")

    alignments: list[TermAlignment] = []
    for node in payload:
        if not isinstance(node, Mapping):
            continue
        term_id = str(node.get("term_id") or node.get("termId") or "").strip()
        if term_id not in known_ids:
            continue
        source_spans = _parse_spans(
            node.get("source_spans", node.get("sourceSpans")), source_length
        )
        target_spans = _parse_spans(
            node.get("target_spans", node.get("targetSpans")), target_length
        )
        if not source_spans and not target_spans:
            continue
        alignments.append(
            TermAlignment(term_id=term_id, source_spans=source_spans, target_spans=target_spans)
        )
    return alignments


async def run_align(
    completer: CompletionService,
    config: CompletionConfig,
    source_text: str,
    target_text: str,
    terms: Sequence[Term],
) -> list[TermAlignment]:
    """Return term alignments for one (source, translation) pair.

    No completion call is made when ``terms`` is empty. Completion failures
    propagate; malformed output yields ``[]``.
    """
    if not terms:
        return []

    raw = await completer.complete(
        config, build_align_prompt(source_text, target_text, terms), ALIGN_INSTRUCTION
    )
    try:
        return parse_alignments(
            raw,
            known_ids={t.id for t in terms},
            source_length=len(source_text),
            target_length=len(target_text),
        )
    except AlignmentParseError as exc:
        logger.warning("Discarding unusable alignment output: %s", exc)
        return []


__all__ = ["ALIGN_INSTRUCTION", "build_align_prompt", "parse_alignments", "run_align"]
