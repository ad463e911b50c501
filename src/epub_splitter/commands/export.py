"""Export command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from epub_splitter.commands.book import display_book_info, display_chapters, load_book
from epub_splitter.commands.selection import interactive_select, parse_selection
from epub_splitter.core.output_writer import (
    FILE_EXTENSIONS,
    OutputWriter,
    build_chapter_export,
    render,
    safe_stem,
)
from epub_splitter.models.output import ExportFormat


def execute_export(
    book_path: Path,
    sections: str | None,
    interactive: bool,
    output: Path | None,
    output_format: ExportFormat,
    quiet: bool,
    console: Console,
) -> Path | None:
    """Export selected chapters as one document.

    Writes to ``output`` when given, to stdout when ``output`` is ``-``.
    Returns the written path, or None when nothing was written to disk.
    """
    book = load_book(book_path, console, quiet=quiet)

    if not quiet:
        display_book_info(book, console)
        console.print()

    if not book.chapters:
        console.print("[yellow]No chapters found. Nothing to export.[/]")
        return None

    if interactive:
        if not quiet:
            display_chapters(book, console)
        selected = interactive_select(
            [chapter.title for chapter in book.chapters], "Select chapters to export:"
        )
    else:
        selected = parse_selection(sections or "all", len(book.chapters))

    if not selected:
        console.print("[yellow]No chapters selected. Exiting.[/]")
        return None

    document = build_chapter_export(book, [book.chapters[i] for i in selected])

    if output is not None and str(output) == "-":
        console.print(
            render(document, output_format), markup=False, highlight=False, soft_wrap=True
        )
        return None

    if output is None:
        output = book_path.parent / (
            f"{safe_stem(book_path.name)}_chapters{FILE_EXTENSIONS[output_format]}"
        )
    writer = OutputWriter(output.parent, book_path)
    filepath = writer.write_export(document, output_format, filename=output.name)

    if not quiet:
        console.print()
        console.print(
            Panel(
                f"[green]Exported {len(selected)} chapter(s)[/]\n\n"
                f"[dim]Output:[/] {filepath}",
                title="Complete",
                border_style="green",
            )
        )
    return filepath
