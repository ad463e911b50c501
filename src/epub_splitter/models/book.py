"""Data models for EPUB structure."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NavigationSource(str, Enum):
    """Where the chapter ordering came from."""

    EPUB3_NAV = "epub3_nav"
    EPUB2_NCX = "epub2_ncx"
    SPINE = "spine"


class ManifestEntry(BaseModel):
    """Manifest item, path already resolved against the package document."""

    model_config = ConfigDict(frozen=True)

    id: str
    path: str
    media_type: str = ""
    properties: frozenset[str] = Field(default_factory=frozenset)


class SpineEntry(BaseModel):
    """Single itemref in reading order."""

    model_config = ConfigDict(frozen=True)

    idref: str
    order: int
    linear: bool = True


class NavigationEntry(BaseModel):
    """Flattened table of contents entry.

    Nesting is discarded while walking the tree; ``id`` only records where the
    entry came from.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    href: str  # fragment stripped
    fragment: str | None = None
    base_path: str = ""  # directory of the navigation document

    @property
    def raw_href(self) -> str:
        if self.fragment:
            return f"{self.href}#{self.fragment}"
        return self.href


class Chapter(BaseModel):
    """Chapter content and metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    html_content: str = ""
    text_content: str = ""
    word_count: int = Field(default=0, ge=0)
    spine_order: int = 0
    source_path: str = ""


class BookMetadata(BaseModel):
    """Book-level metadata."""

    model_config = ConfigDict(frozen=True)

    title: str = "Unknown Title"
    author: str = "Unknown Author"


class ExtractionIssue(BaseModel):
    """Non-fatal problem met while resolving an archive."""

    model_config = ConfigDict(frozen=True)

    context: str
    message: str


class ResolvedBook(BaseModel):
    """Complete resolved EPUB structure."""

    model_config = ConfigDict(frozen=True)

    filename: str = ""
    metadata: BookMetadata = Field(default_factory=BookMetadata)
    chapters: list[Chapter] = Field(default_factory=list)
    navigation_source: NavigationSource = NavigationSource.SPINE
    warnings: list[ExtractionIssue] = Field(default_factory=list)

    @property
    def total_words(self) -> int:
        return sum(chapter.word_count for chapter in self.chapters)
