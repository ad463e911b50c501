"""Render selected chapters or chunks and write them to disk."""

from __future__ import annotations

import html
import re
from datetime import datetime
from pathlib import Path

from epub_splitter.core.content_processor import ContentProcessor
from epub_splitter.models.book import Chapter, ResolvedBook
from epub_splitter.models.chunk import Chunk, PartitionResult
from epub_splitter.models.output import (
    ChunkMetadata,
    ChunkOutput,
    ExportDocument,
    ExportFormat,
    ExportSection,
    SplitManifest,
)

FILE_EXTENSIONS = {"html": ".html", "text": ".txt", "markdown": ".md"}


def build_chapter_export(book: ResolvedBook, chapters: list[Chapter]) -> ExportDocument:
    """Export document for chapters, in spine order."""
    return ExportDocument(
        title=book.metadata.title,
        author=book.metadata.author,
        kind="chapters",
        sections=[
            ExportSection(title=chapter.title, html_content=chapter.html_content)
            for chapter in sorted(chapters, key=lambda ch: ch.spine_order)
        ],
    )


def build_chunk_export(book: ResolvedBook, chunks: list[Chunk]) -> ExportDocument:
    """Export document for chunks, in chunk order."""
    return ExportDocument(
        title=book.metadata.title,
        author=book.metadata.author,
        kind="chunks",
        sections=[
            ExportSection(title=chunk.title, html_content=chunk.html_content)
            for chunk in sorted(chunks, key=lambda ch: ch.index)
        ],
    )


def render_html(document: ExportDocument) -> str:
    parts = [
        '<div class="export-document">',
        f'<h1 class="export-title">{html.escape(document.title)}</h1>',
        f'<p class="export-author">by {html.escape(document.author)}</p>',
        '<hr class="export-separator">',
    ]
    for section in document.sections:
        parts.append('<div class="export-chapter">')
        parts.append(f'<h2 class="export-chapter-title">{html.escape(section.title)}</h2>')
        parts.append(f'<div class="export-chapter-content">{section.html_content}</div>')
        parts.append("</div>")
    parts.append("</div>")
    return "".join(parts)


def html_to_plain_text(markup: str) -> str:
    """Plain text of export HTML; blocks end with a blank line, `br` becomes a newline."""
    return ContentProcessor().to_plain_text(markup)


def render(document: ExportDocument, output_format: ExportFormat = "html") -> str:
    """Render an export document as HTML, plain text or Markdown."""
    markup = render_html(document)
    if output_format == "text":
        return html_to_plain_text(markup)
    return ContentProcessor().process(markup, output_format)


def safe_stem(name: str) -> str:
    """Filesystem friendly version of a book filename or title."""
    stem = Path(name).stem if name.lower().endswith(".epub") else name
    clean_stem = re.sub(r"[^\w\s-]", "", stem).strip()
    return re.sub(r"[-\s]+", "_", clean_stem) or "book"


class OutputWriter:
    """Write exports and chunk files to an output directory."""

    def __init__(self, output_dir: Path, source_path: Path):
        """Initialize output writer.

        Args:
            output_dir: Directory to write output files
            source_path: Path to the source EPUB
        """
        self.output_dir = output_dir
        self.source_path = source_path
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.processor = ContentProcessor()

    def write_export(
        self,
        document: ExportDocument,
        output_format: ExportFormat = "html",
        filename: str | None = None,
    ) -> Path:
        """Write one export file and return its path."""
        if filename is None:
            filename = (
                f"{safe_stem(self.source_path.name)}_{document.kind}"
                f"{FILE_EXTENSIONS[output_format]}"
            )
        filepath = self.output_dir / filename
        filepath.write_text(render(document, output_format), encoding="utf-8")
        return filepath

    def write_chunk(
        self, chunk: Chunk, output_format: ExportFormat = "text"
    ) -> tuple[Path, ChunkMetadata]:
        """Write single chunk to JSON file."""
        metadata = ChunkMetadata(
            chunk_id=chunk.id,
            chunk_index=chunk.index,
            title=chunk.title,
            source_path=str(self.source_path),
            extracted_at=datetime.now(),
            word_count=chunk.word_count,
            start_word_index=chunk.start_word_index,
            end_word_index=chunk.end_word_index,
            start_chapter=chunk.start_chapter,
            end_chapter=chunk.end_chapter,
        )
        if output_format == "text":
            content = chunk.text_content
        else:
            content = self.processor.process(chunk.html_content, output_format)

        output = ChunkOutput(metadata=metadata, content=content, format=output_format)

        filepath = self.output_dir / f"chunk_{chunk.index + 1:03d}.json"
        filepath.write_text(output.model_dump_json(indent=2), encoding="utf-8")
        return filepath, metadata

    def write_chunks(
        self,
        book: ResolvedBook,
        result: PartitionResult,
        selected: list[int] | None = None,
        output_format: ExportFormat = "text",
    ) -> Path:
        """Write the selected chunks (all by default) plus the manifest.

        Returns the manifest path.
        """
        if selected is None:
            selected = list(range(len(result.chunks)))
        chunk_metadata = [
            self.write_chunk(result.chunks[i], output_format)[1] for i in selected
        ]
        return self.write_manifest(book, result, selected, chunk_metadata)

    def write_manifest(
        self,
        book: ResolvedBook,
        result: PartitionResult,
        written_indices: list[int],
        chunk_metadata: list[ChunkMetadata],
    ) -> Path:
        """Write split manifest file."""
        manifest = SplitManifest(
            book_title=book.metadata.title,
            author=book.metadata.author,
            source_path=str(self.source_path),
            output_directory=str(self.output_dir),
            created_at=datetime.now(),
            total_words=result.plan.total_words,
            chunk_count=len(result.chunks),
            target_words=result.plan.target_words,
            tolerance=result.plan.tolerance,
            iterations=result.iterations,
            converged=result.converged,
            written_chunks=written_indices,
            chunks=chunk_metadata,
            warnings=[f"{w.context}: {w.message}" for w in book.warnings],
        )

        filepath = self.output_dir / "manifest.json"
        filepath.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
        return filepath
