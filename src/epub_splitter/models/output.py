"""Data models for output format."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ExportFormat = Literal["html", "text", "markdown"]


class ExportSection(BaseModel):
    """One titled block of an export document."""

    title: str
    html_content: str = ""


class ExportDocument(BaseModel):
    """Selected chapters or chunks of a book, ready to render."""

    title: str
    author: str
    kind: Literal["chapters", "chunks"] = "chapters"
    sections: list[ExportSection] = Field(default_factory=list)


class ChunkMetadata(BaseModel):
    """Metadata accompanying chunk content."""

    chunk_id: str
    chunk_index: int
    title: str
    source_path: str
    extracted_at: datetime = Field(default_factory=datetime.now)
    word_count: int
    start_word_index: int
    end_word_index: int
    start_chapter: str
    end_chapter: str


class ChunkOutput(BaseModel):
    """Complete chunk output file."""

    metadata: ChunkMetadata
    content: str
    format: ExportFormat = "text"


class SplitManifest(BaseModel):
    """Manifest written next to the chunk files."""

    book_title: str
    author: str
    source_path: str
    output_directory: str
    created_at: datetime = Field(default_factory=datetime.now)
    total_words: int
    chunk_count: int
    target_words: int
    tolerance: int
    iterations: int
    converged: bool
    written_chunks: list[int]
    chunks: list[ChunkMetadata]
    warnings: list[str] = Field(default_factory=list)
