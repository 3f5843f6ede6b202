# src/mediterm/cli.py
"""
MediTerm Command Line Interface (CLI).

Terminal front-end for the translation pipeline, built on `typer` and `rich`.

Features
--------
- **Status Spinner**: live step labels ("Chunk 2/3: Reviewing") while the
  pipeline runs.
- **Rich Rendering**: the translation, the reviewer's notes and a term
  alignment table, and both texts with their terms highlighted.
- **Offline Tools**: term highlighting and token/chunk estimates that never
  touch the network.

Usage
-----
    # Translate a document with a term dictionary
    $ mediterm translate notes.txt -d terms.json --mode professional

    # Show which dictionary terms a text contains
    $ mediterm segment notes.txt -d terms.json

    # Estimate tokens and the chunk plan
    $ mediterm tokens notes.txt --max-tokens 500
"""

from __future__ import annotations

import asyncio
import time
import traceback
from pathlib import Path
from typing import Annotated, Literal

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from mediterm.core.contracts.segment import TextSegment
from mediterm.core.contracts.term import other_side
from mediterm.core.contracts.translation import TranslationMode, TranslationResult
from mediterm.core.dictionary import TermDictionary, load_dictionary
from mediterm.core.errors import MediTermError
from mediterm.core.settings import load_settings
from mediterm.llm.models import CompletionConfig
from mediterm.pipelines.translation import Translator
from mediterm.text.chunker import calculate_chunk_size, split_into_chunks
from mediterm.text.language import detect_source_side
from mediterm.text.segmenter import detected_terms, segment, segments_from_alignments
from mediterm.text.tokens import estimate_tokens

# Ensure env vars (like MEDITERM_API_KEY) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="MediTerm: term-aware medical translation.",
    rich_markup_mode="markdown",
)
console = Console()

SideOption = Literal["a", "b"]


def _file_argument() -> typer.models.ArgumentInfo:
    return typer.Argument(
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Path to a UTF-8 text file.",
    )


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _load_terms(path: Path | None) -> TermDictionary:
    """Load the dictionary file, or return an empty dictionary."""
    if path is None:
        return TermDictionary()
    try:
        return load_dictionary(path)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]❌ Could not load dictionary {path}:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def _highlight(segments: list[TextSegment]) -> Text:
    """Render segments: strong matches bold, weak matches italic."""
    out = Text()
    for seg in segments:
        if seg.kind == "strong":
            out.append(seg.text, style="bold cyan")
        elif seg.kind == "weak":
            out.append(seg.text, style="italic yellow")
        else:
            out.append(seg.text)
    return out


def _render_result(result: TranslationResult, terms: TermDictionary) -> None:
    console.rule("[bold]Translation[/bold]")
    console.print(result.final_text)
    console.print("")

    if result.review_notes:
        console.print(Panel(result.review_notes, title="Review Notes", border_style="yellow"))

    if result.alignments:
        table = Table(title="Term Alignment")
        table.add_column("Term")
        table.add_column("Source spans")
        table.add_column("Target spans")
        for alignment in result.alignments:
            term = terms.get(alignment.term_id)
            name = f"{term.label_a} / {term.label_b}" if term else alignment.term_id
            table.add_row(
                name,
                ", ".join(f"{s}-{e}" for s, e in alignment.source_spans),
                ", ".join(f"{s}-{e}" for s, e in alignment.target_spans),
            )
        console.print(table)


def _render_highlights(source_text: str, result: TranslationResult, terms: TermDictionary) -> None:
    """Show both texts with their terms highlighted.

    Reviewed alignments are used when the pipeline produced them; otherwise the
    translation is re-matched against the terms found in the source.
    """
    if not terms:
        return
    if result.alignments:
        source_segments = segments_from_alignments(source_text, result.alignments, "source", terms)
        target_segments = segments_from_alignments(result.final_text, result.alignments, "target", terms)
        origin = "from alignments"
    else:
        side = detect_source_side(source_text)
        source_segments = segment(source_text, terms, side)
        found = TermDictionary(detected_terms(source_segments))
        target_segments = segment(result.final_text, found, other_side(side))
        origin = f"re-matched, {len(found)} source term(s)"

    console.print(Panel(_highlight(source_segments), title="Highlighted source", subtitle=origin))
    console.print(Panel(_highlight(target_segments), title="Highlighted translation", subtitle=origin))


# --------------------------------------------------------------------------- #
# Commands)
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def translate(
    file: Annotated[Path, _file_argument()],
    mode: Annotated[
        str,
        typer.Option("--mode", "-m", help="`fast` (one pass) or `professional` (review + polish)."),
    ] = "fast",
    dictionary: Annotated[
        Path | None,
        typer.Option("--dictionary", "-d", help="JSON term dictionary to enforce."),
    ] = None,
    provider: Annotated[
        str | None,
        typer.Option("--provider", "-p", help="gemini, openai-compatible or glm."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", help="Override the provider's default model."),
    ] = None,
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", min=1, help="Token budget per chunk."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the translation to this file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """
    Translate a document, enforcing the dictionary's terminology.
    """
    if mode not in ("fast", "professional"):
        console.print(f"[bold red]❌ Unknown mode:[/bold red] {mode}")
        raise typer.Exit(code=2)
    chosen_mode: TranslationMode = "professional" if mode == "professional" else "fast"

    text = _read_text(file)
    terms = _load_terms(dictionary)
    defaults = load_settings().completion_config()
    config = CompletionConfig(
        provider=provider or defaults.provider,
        api_key=defaults.api_key,
        base_url=defaults.base_url,
        model=model or defaults.model,
    )

    console.print(
        Panel.fit(
            f"[bold cyan]MediTerm[/bold cyan] ({chosen_mode})\nProcessing: [u]{file.name}[/u]",
            border_style="cyan",
        )
    )

    start_time = time.time()
    translator = Translator()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("[cyan]Building glossary...", total=None)
            result = asyncio.run(
                translator.translate(
                    text,
                    chosen_mode,
                    config,
                    dictionary=terms,
                    max_tokens_per_chunk=max_tokens,
                    on_progress=lambda label: progress.update(task, description=f"[yellow]{label}..."),
                )
            )
    except MediTermError as e:
        console.print(
            Panel(f"{e}\n\n[dim]{e.user_hint}[/dim]", title="❌ Translation failed", border_style="red")
        )
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e
    except Exception as e:
        console.print(f"\n[bold red]❌ Pipeline Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    duration = time.time() - start_time
    console.print(
        f"\n[bold green]✅ Complete![/bold green] "
        f"({result.chunk_count} chunk(s), {len(result.glossary)} glossary terms, took {duration:.1f}s)\n"
    )
    _render_result(result, terms)
    _render_highlights(text, result, terms)

    if output is not None:
        try:
            output.write_text(result.final_text, encoding="utf-8")
        except OSError as e:
            console.print(f"[bold red]⚠️ Failed to save to {output}: {e}[/bold red]")
            raise typer.Exit(code=1) from e
        console.print(Panel(f"Saved to: {output}", title="Artifact", border_style="green"))


@app.command("segment")  # type: ignore[misc]
def segment_command(
    file: Annotated[Path, _file_argument()],
    dictionary: Annotated[
        Path,
        typer.Option("--dictionary", "-d", help="JSON term dictionary to match against."),
    ],
    side: Annotated[
        str | None,
        typer.Option("--side", "-s", help="`a` or `b`; detected from the text when omitted."),
    ] = None,
) -> None:
    """
    Highlight dictionary terms in a text (strong bold, weak italic).
    """
    if side not in (None, "a", "b"):
        console.print(f"[bold red]❌ Unknown side:[/bold red] {side}")
        raise typer.Exit(code=2)

    text = _read_text(file)
    terms = _load_terms(dictionary)
    chosen: SideOption = "a" if (side or detect_source_side(text)) == "a" else "b"

    segments = segment(text, terms, chosen)
    console.print(_highlight(segments))

    found = detected_terms(segments)
    table = Table(title=f"Detected terms ({len(found)})")
    table.add_column("ID", style="dim")
    table.add_column("Language A")
    table.add_column("Language B")
    table.add_column("Category")
    for term in found:
        table.add_row(term.id, term.label_a, term.label_b, term.category)
    console.print(table)


@app.command()  # type: ignore[misc]
def tokens(
    file: Annotated[Path, _file_argument()],
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", min=1, help="Token budget per chunk."),
    ] = None,
) -> None:
    """
    Estimate the token count of a text and show how it would be chunked.
    """
    text = _read_text(file)
    budget = max_tokens or load_settings().max_tokens_per_chunk
    total = estimate_tokens(text)
    console.print(f"Estimated tokens: [bold]{total}[/bold] (budget {budget} per chunk)")

    if total <= budget:
        console.print("Fits in a single chunk.")
        return

    chunks = split_into_chunks(text, calculate_chunk_size(total, budget))
    table = Table(title=f"Chunk plan ({len(chunks)} chunks)")
    table.add_column("#", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Starts with")
    for index, chunk in enumerate(chunks, start=1):
        preview = chunk.strip().replace("\n", " ")[:40]
        table.add_row(str(index), str(estimate_tokens(chunk)), preview)
    console.print(table)


if __name__ == "__main__":
    app()
