"""Locate, resolve and display a book for the CLI commands."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from epub_splitter.core.epub_resolver import EpubResolver
from epub_splitter.errors import LibraryError
from epub_splitter.library.manager import LibraryManager
from epub_splitter.models.book import ResolvedBook


def locate_book(book: str, library: LibraryManager) -> Path:
    """Find a book on disk, falling back to a name in the library.

    Raises:
        LibraryError: If neither exists
    """
    path = Path(book)
    if path.is_file():
        return path.resolve()
    if library.exists(book):
        return library.path_for(book)
    raise LibraryError(f"File not found: {book}")


def load_book(path: Path, console: Console, quiet: bool = False) -> ResolvedBook:
    """Resolve an EPUB file, with a spinner unless quiet."""
    resolver = EpubResolver()
    data = path.read_bytes()
    if quiet:
        return resolver.resolve(data, path.name)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Reading {path.name}...", total=None)
        return resolver.resolve(data, path.name)


def display_book_info(book: ResolvedBook, console: Console) -> None:
    """Print the book information panel."""
    source = book.navigation_source.value.replace("_", " ").upper()
    info_lines = [
        f"[bold]{book.metadata.title}[/]",
        "",
        f"[dim]Author:[/] {book.metadata.author}",
        f"[dim]File:[/] {book.filename}",
        f"[dim]Chapter order:[/] {source}",
        f"[dim]Chapters:[/] {len(book.chapters)}",
        f"[dim]Total words:[/] {book.total_words:,}",
    ]

    if book.warnings:
        info_lines.append("")
        info_lines.append(f"[yellow]{len(book.warnings)} issue(s) while reading:[/]")
        for warning in book.warnings:
            info_lines.append(f"[yellow]⚠ {warning.context}: {warning.message}[/]")

    console.print()
    console.print(
        Panel("\n".join(info_lines), title="Book Information", border_style="green")
    )


def display_chapters(book: ResolvedBook, console: Console) -> None:
    """Print the chapter table."""
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Words", justify="right", style="green")
    table.add_column("Source", style="dim")

    for i, chapter in enumerate(book.chapters):
        table.add_row(
            str(i + 1), chapter.title, f"{chapter.word_count:,}", chapter.source_path
        )

    console.print(table)
