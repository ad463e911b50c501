"""Split command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from epub_splitter.commands.book import display_book_info, load_book
from epub_splitter.commands.selection import interactive_select, parse_selection
from epub_splitter.core.output_writer import (
    OutputWriter,
    build_chunk_export,
    safe_stem,
)
from epub_splitter.core.partitioner import ChunkPartitioner
from epub_splitter.models.chunk import ChunkPlan, PartitionResult
from epub_splitter.models.output import ExportFormat


def display_plan(plan: ChunkPlan, console: Console) -> None:
    """Print total words, target size and acceptable range."""
    console.print(
        Panel(
            f"[dim]Total words:[/] {plan.total_words:,}\n"
            f"[dim]Chunks:[/] {plan.chunk_count}\n"
            f"[dim]Target words per chunk:[/] {plan.target_words:,}\n"
            f"[dim]Acceptable range:[/] {plan.min_words:,}-{plan.max_words:,}",
            title="Chunk Preview",
            border_style="blue",
        )
    )


def display_chunks(result: PartitionResult, console: Console) -> None:
    """Print the chunk table and whether refinement converged."""
    table = Table(title="Chunks", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Words", justify="right", style="green")
    table.add_column("From chapter", style="white")
    table.add_column("To chapter", style="white")

    for chunk in result.chunks:
        words = f"{chunk.word_count:,}"
        if not result.plan.within_tolerance(chunk.word_count):
            words = f"[yellow]{words}[/]"
        table.add_row(str(chunk.index + 1), words, chunk.start_chapter, chunk.end_chapter)

    console.print(table)
    if not result.converged:
        console.print(
            f"[yellow]Refinement stopped after {result.iterations} pass(es) "
            "without meeting the target exactly; showing best effort.[/]"
        )


def get_default_output_dir(book_path: Path) -> Path:
    """Get default output directory based on book filename."""
    return book_path.parent / f"{safe_stem(book_path.name)}_chunks"


def execute_split(
    book_path: Path,
    chunk_count: str,
    sections: str | None,
    interactive: bool,
    output_dir: Path | None,
    output_format: ExportFormat,
    preview: bool,
    combined: bool,
    quiet: bool,
    console: Console,
) -> Path | None:
    """Split a book into chunks and write the selected ones.

    Returns the manifest path, or None when nothing was written.
    """
    book = load_book(book_path, console, quiet=quiet)
    partitioner = ChunkPartitioner()

    if not quiet:
        display_book_info(book, console)
        console.print()

    if preview:
        display_plan(partitioner.plan(book.chapters, chunk_count), console)
        return None

    result = partitioner.partition(book.chapters, chunk_count)

    if not quiet:
        display_plan(result.plan, console)
        console.print()
        display_chunks(result, console)

    if interactive:
        selected = interactive_select(
            [
                f"{chunk.title} ({chunk.word_count:,} words, "
                f"{chunk.start_chapter} - {chunk.end_chapter})"
                for chunk in result.chunks
            ],
            "Select chunks to write:",
        )
    else:
        selected = parse_selection(sections or "all", len(result.chunks))

    if not selected:
        console.print("[yellow]No chunks selected. Exiting.[/]")
        return None

    writer = OutputWriter(output_dir or get_default_output_dir(book_path), book_path)
    manifest_path = writer.write_chunks(book, result, selected, output_format)
    combined_path = None
    if combined:
        document = build_chunk_export(book, [result.chunks[i] for i in selected])
        combined_path = writer.write_export(document, output_format)

    if not quiet:
        summary_lines = [
            f"[green]Wrote {len(selected)} chunk(s)[/]",
            "",
            f"[dim]Output directory:[/] {writer.output_dir}",
            f"[dim]Manifest:[/] {manifest_path.name}",
        ]
        if combined_path is not None:
            summary_lines.append(f"[dim]Combined export:[/] {combined_path.name}")

        console.print()
        console.print(
            Panel("\n".join(summary_lines), title="Complete", border_style="green")
        )
    return manifest_path
