"""
Translation pipeline: glossary -> draft [-> review -> polish -> align].

Flow
----
1. Resolve the direction (auto-detected from the text when not given) and
   build the mandatory glossary from strong term matches in the source.
2. Estimate the source tokens. Within budget, the text is one chunk;
   otherwise it is split into evenly sized chunks processed strictly in
   order.
3. Per chunk:

   - ``fast``: one draft call.
   - ``professional``: draft, review, polish, then align against the terms
     the chunk's glossary references.

4. Chunk outputs are joined with a blank line. Alignment spans are shifted
   into document coordinates (source offset grows by the chunk length,
   target offset by the translated length plus the separator) and merged
   per term id. Review notes are joined under ``[Chunk i/n]`` labels.

Superseded requests
-------------------
Each :meth:`Translator.translate` call takes the next sequence number. A
request that is no longer the latest stops issuing steps and raises
:class:`StaleRequestError` instead of returning, whether it would have
succeeded or failed. In-flight calls are not interrupted.

Errors
------
Any step failure aborts the whole request; there are no partial results.
Only align output that cannot be parsed is recovered (as no alignments).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from mediterm.agents.align_agent import run_align
from mediterm.agents.draft_agent import run_draft
from mediterm.agents.polish_agent import run_polish
from mediterm.agents.review_agent import run_review
from mediterm.core.contracts.alignment import TermAlignment, merge_alignments
from mediterm.core.contracts.glossary import GlossaryEntry
from mediterm.core.contracts.term import Side, Term, other_side
from mediterm.core.contracts.translation import TranslationMode, TranslationResult
from mediterm.core.dictionary import TermDictionary
from mediterm.core.errors import StaleRequestError
from mediterm.core.settings import get_logger, load_settings
from mediterm.llm.models import CompletionConfig
from mediterm.llm.resilient import ResilientCompleter
from mediterm.llm.service import CompletionService, LLMCompletionService
from mediterm.text.chunker import calculate_chunk_size, split_into_chunks
from mediterm.text.language import LANGUAGE_NAMES, detect_source_side
from mediterm.text.tokens import estimate_tokens

from .glossary import build_glossary, filter_glossary, relevant_terms

ProgressCallback = Callable[[str], None]

CHUNK_SEPARATOR = "\n\n"

logger = get_logger(__name__)


@dataclass(slots=True)
class _Request:
    """Per-request context threaded through the steps."""

    sequence: int
    mode: TranslationMode
    config: CompletionConfig
    dictionary: TermDictionary
    source_language: str
    target_language: str
    on_progress: ProgressCallback | None = None


@dataclass(slots=True)
class _ChunkOutcome:
    text: str
    review_notes: str | None = None
    alignments: list[TermAlignment] = field(default_factory=list)


class Translator:
    """Runs translation requests and discards superseded ones.

    Parameters
    ----------
    service:
        Completion service; wrapped in a :class:`ResilientCompleter`.
        Defaults to the bundled HTTP adapter.
    completer:
        A ready-made completer, used as-is instead of wrapping ``service``.
    """

    def __init__(
        self,
        service: CompletionService | None = None,
        *,
        completer: ResilientCompleter | None = None,
    ) -> None:
        if completer is None:
            completer = ResilientCompleter(service if service is not None else LLMCompletionService())
        self.completer = completer
        self._latest = 0

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the most recently started request."""
        return self._latest

    def _check_current(self, request: _Request) -> None:
        if request.sequence != self._latest:
            logger.info("Discarding request #%d (latest is #%d)", request.sequence, self._latest)
            raise StaleRequestError(request.sequence, self._latest)

    def _step(self, request: _Request, label: str) -> None:
        """Guard a step: bail out when stale, otherwise report progress."""
        self._check_current(request)
        logger.info("request #%d: %s", request.sequence, label)
        if request.on_progress is not None:
            request.on_progress(label)

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #
    async def translate(
        self,
        source_text: str,
        mode: TranslationMode,
        credentials: CompletionConfig,
        *,
        dictionary: Sequence[Term] = (),
        max_tokens_per_chunk: int | None = None,
        source_language_name: str | None = None,
        target_language_name: str | None = None,
        source_side: Side | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> TranslationResult:
        """Translate ``source_text`` and return the final text and diagnostics.

        Raises
        ------
        AuthError, QuotaExceeded, TransportError
            When a completion step fails; the request is aborted.
        StaleRequestError
            When a newer request was started before this one finished.
        ValueError
            If ``max_tokens_per_chunk`` is not positive.
        """
        self._latest += 1
        sequence = self._latest

        budget = (
            load_settings().max_tokens_per_chunk
            if max_tokens_per_chunk is None
            else max_tokens_per_chunk
        )
        if budget <= 0:
            raise ValueError("max_tokens_per_chunk must be positive")

        side = source_side or detect_source_side(source_text)
        terms = dictionary if isinstance(dictionary, TermDictionary) else TermDictionary(dictionary)
        request = _Request(
            sequence=sequence,
            mode=mode,
            config=credentials,
            dictionary=terms,
            source_language=source_language_name or LANGUAGE_NAMES[side],
            target_language=target_language_name or LANGUAGE_NAMES[other_side(side)],
            on_progress=on_progress,
        )

        if not source_text.strip():
            return TranslationResult(
                final_text="",
                review_notes="" if mode == "professional" else None,
                alignments=[] if mode == "professional" else None,
                mode=mode,
            )

        glossary = build_glossary(source_text, terms, side)
        logger.info(
            "request #%d: %s mode, %d glossary entries", sequence, mode, len(glossary)
        )

        try:
            total = estimate_tokens(source_text)
            if total <= budget:
                outcome = await self._run_chunk(request, source_text, glossary, label="")
                result = self._single_result(request, outcome, glossary)
            else:
                chunks = split_into_chunks(source_text, calculate_chunk_size(total, budget))
                result = await self._run_chunks(request, chunks, glossary)
        except StaleRequestError:
            raise
        except Exception as exc:
            if sequence != self._latest:
                logger.info("Discarding failure of superseded request #%d: %s", sequence, exc)
                raise StaleRequestError(sequence, self._latest) from exc
            raise

        self._check_current(request)
        return result

    # ------------------------------------------------------------------ #
    # Paths
    # ------------------------------------------------------------------ #
    @staticmethod
    def _single_result(
        request: _Request, outcome: _ChunkOutcome, glossary: list[GlossaryEntry]
    ) -> TranslationResult:
        if request.mode == "fast":
            return TranslationResult(final_text=outcome.text, mode="fast", glossary=glossary)
        return TranslationResult(
            final_text=outcome.text,
            review_notes=outcome.review_notes,
            alignments=outcome.alignments,
            mode="professional",
            glossary=glossary,
        )

    async def _run_chunks(
        self, request: _Request, chunks: list[str], glossary: list[GlossaryEntry]
    ) -> TranslationResult:
        total = len(chunks)
        outputs: list[str] = []
        notes: list[str] = []
        merged: dict[str, TermAlignment] = {}
        source_offset = 0
        target_offset = 0

        for index, chunk in enumerate(chunks, start=1):
            label = f"Chunk {index}/{total}"
            outcome = await self._run_chunk(
                request, chunk, filter_glossary(glossary, chunk), label=label
            )
            outputs.append(outcome.text)

            if request.mode == "professional":
                if outcome.review_notes:
                    notes.append(f"[{label}]\n{outcome.review_notes}")
                merge_alignments(
                    merged,
                    [a.shifted(source_offset, target_offset) for a in outcome.alignments],
                )

            source_offset += len(chunk)
            target_offset += len(outcome.text) + len(CHUNK_SEPARATOR)

        final_text = CHUNK_SEPARATOR.join(outputs)
        if request.mode == "fast":
            return TranslationResult(
                final_text=final_text, mode="fast", chunk_count=total, glossary=glossary
            )
        return TranslationResult(
            final_text=final_text,
            review_notes=CHUNK_SEPARATOR.join(notes),
            alignments=list(merged.values()),
            mode="professional",
            chunk_count=total,
            glossary=glossary,
        )

    async def _run_chunk(
        self,
        request: _Request,
        text: str,
        glossary: list[GlossaryEntry],
        *,
        label: str,
    ) -> _ChunkOutcome:
        """Run the per-chunk state machine for ``request.mode``."""
        prefix = f"{label}: " if label else ""
        if not text.strip():
            return _ChunkOutcome(text="")

        self._step(request, f"{prefix}Translating")
        draft = await run_draft(
            self.completer,
            request.config,
            text,
            source_language=request.source_language,
            target_language=request.target_language,
            glossary=glossary,
        )
        if request.mode == "fast":
            return _ChunkOutcome(text=draft)

        self._step(request, f"{prefix}Reviewing")
        notes = await run_review(
            self.completer,
            request.config,
            text,
            draft,
            source_language=request.source_language,
            target_language=request.target_language,
        )

        self._step(request, f"{prefix}Polishing")
        final = await run_polish(
            self.completer,
            request.config,
            text,
            draft,
            notes,
            source_language=request.source_language,
            target_language=request.target_language,
            glossary=glossary,
        )

        terms = relevant_terms(glossary, request.dictionary)
        alignments: list[TermAlignment] = []
        if terms:
            self._step(request, f"{prefix}Aligning terms")
            alignments = await run_align(self.completer, request.config, text, final, terms)
        return _ChunkOutcome(text=final, review_notes=notes, alignments=alignments)


async def translate(
    source_text: str,
    mode: TranslationMode,
    credentials: CompletionConfig,
    *,
    service: CompletionService | None = None,
    **options: object,
) -> TranslationResult:
    """One-shot convenience wrapper around a fresh :class:`Translator`.

    ``options`` are the keyword arguments of :meth:`Translator.translate`.
    """
    translator = Translator(service)
    return await translator.translate(source_text, mode, credentials, **options)  # type: ignore[arg-type]


__all__ = ["Translator", "translate", "CHUNK_SEPARATOR", "ProgressCallback"]
