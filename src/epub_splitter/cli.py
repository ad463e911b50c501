"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from epub_splitter.commands.book import (
    display_book_info,
    display_chapters,
    load_book,
    locate_book,
)
from epub_splitter.config import get_settings
from epub_splitter.library.manager import LibraryManager

app = typer.Typer(
    name="epub-splitter",
    help="Extract chapters from EPUB files and split books into equal-sized chunks.",
    add_completion=False,
)

console = Console()

# Library subcommand group
library_app = typer.Typer(help="Manage the local EPUB library")
app.add_typer(library_app, name="library")

FORMATS = ("html", "text", "markdown")

LibraryDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--dir",
        "-d",
        help="Library directory (default: $EPUB_SPLITTER_LIBRARY_DIR or ./files)",
    ),
]


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def get_library(library_dir: Path | None = None) -> LibraryManager:
    return LibraryManager(library_dir or get_settings().library_dir)


def _resolve_book_path(book: str) -> Path:
    try:
        return locate_book(book, get_library())
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


def _check_format(output_format: str) -> None:
    if output_format not in FORMATS:
        console.print(
            f"[red]Invalid format: {output_format}. Use html, text, or markdown.[/]"
        )
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Extract chapters from EPUB files and split books into equal-sized chunks."""
    configure_logging(verbose)


@app.command()
def info(
    book: Annotated[
        str,
        typer.Argument(help="Path to an EPUB file, or the name of one in the library"),
    ],
) -> None:
    """Display book metadata and the resolved chapter list."""
    book_path = _resolve_book_path(book)

    try:
        parsed = load_book(book_path, console)
        display_book_info(parsed, console)
        console.print()
        display_chapters(parsed, console)
        console.print()
    except Exception as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)


@app.command()
def export(
    book: Annotated[
        str,
        typer.Argument(help="Path to an EPUB file, or the name of one in the library"),
    ],
    sections: Annotated[
        Optional[str],
        typer.Option(
            "--sections",
            "-s",
            help="Chapters to export by index: '1,3,5-7' or 'all' (default: all)",
        ),
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option(
            "--interactive",
            "-i",
            help="Pick chapters from a checklist",
        ),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output file, or '-' for stdout (default: {book_name}_chapters.{ext})",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: html, text, or markdown",
        ),
    ] = "html",
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Export selected chapters as a single document."""
    _check_format(output_format)
    book_path = _resolve_book_path(book)

    try:
        from epub_splitter.commands.export import execute_export

        execute_export(
            book_path=book_path,
            sections=sections,
            interactive=interactive,
            output=output,
            output_format=output_format,  # type: ignore
            quiet=quiet,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def split(
    book: Annotated[
        str,
        typer.Argument(help="Path to an EPUB file, or the name of one in the library"),
    ],
    chunks: Annotated[
        str,
        typer.Option(
            "--chunks",
            "-n",
            help="Number of chunks to create (minimum 2)",
        ),
    ],
    sections: Annotated[
        Optional[str],
        typer.Option(
            "--sections",
            "-s",
            help="Chunks to write by index: '1,3,5-7' or 'all' (default: all)",
        ),
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option(
            "--interactive",
            "-i",
            help="Pick chunks from a checklist",
        ),
    ] = False,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Output directory (default: {book_name}_chunks/)",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Chunk content format: text, html, or markdown",
        ),
    ] = "text",
    preview: Annotated[
        bool,
        typer.Option(
            "--preview",
            help="Only show total words, target size and acceptable range",
        ),
    ] = False,
    combined: Annotated[
        bool,
        typer.Option(
            "--combined",
            help="Also write the selected chunks as one export document",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Split a book into N roughly equal chunks at natural break points."""
    _check_format(output_format)
    book_path = _resolve_book_path(book)

    try:
        from epub_splitter.commands.split import execute_split

        execute_split(
            book_path=book_path,
            chunk_count=chunks,
            sections=sections,
            interactive=interactive,
            output_dir=output_dir,
            output_format=output_format,  # type: ignore
            preview=preview,
            combined=combined,
            quiet=quiet,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@library_app.command("list")
def library_list(library_dir: LibraryDirOption = None) -> None:
    """List EPUB files in the library."""
    entries = get_library(library_dir).list_books()

    if not entries:
        console.print("[dim]No EPUB files in library[/]")
        return

    table = Table(title="Library", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="white")
    table.add_column("Size", justify="right", style="green")
    table.add_column("Modified", style="dim")

    for entry in entries:
        table.add_row(
            entry.name,
            f"{entry.size / 1024:,.1f} KB",
            entry.modified.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@library_app.command("add")
def library_add(
    files: Annotated[
        list[Path],
        typer.Argument(
            help="EPUB files to copy into the library",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    library_dir: LibraryDirOption = None,
) -> None:
    """Copy EPUB files into the library."""
    library = get_library(library_dir)
    failed = 0

    for path in files:
        try:
            library.add(path)
            console.print(f"[green]Added {path.name}[/]")
        except Exception as e:
            console.print(f"[red]Error adding {path.name}: {e}[/]")
            failed += 1

    if failed:
        raise typer.Exit(1)


@library_app.command("remove")
def library_remove(
    name: Annotated[str, typer.Argument(help="File name in the library")],
    library_dir: LibraryDirOption = None,
) -> None:
    """Delete an EPUB file from the library."""
    try:
        get_library(library_dir).delete(name)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]File {name} deleted successfully[/]")


if __name__ == "__main__":
    app()
