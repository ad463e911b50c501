"""Data models."""

from epub_splitter.models.book import (
    BookMetadata,
    Chapter,
    ExtractionIssue,
    ManifestEntry,
    NavigationEntry,
    NavigationSource,
    ResolvedBook,
    SpineEntry,
)
from epub_splitter.models.chunk import (
    Chunk,
    ChunkPlan,
    Corpus,
    CorpusMarker,
    PartitionResult,
    Segment,
)
from epub_splitter.models.output import (
    ChunkMetadata,
    ChunkOutput,
    ExportDocument,
    ExportFormat,
    ExportSection,
    SplitManifest,
)

__all__ = [
    # Book models
    "ManifestEntry",
    "SpineEntry",
    "NavigationEntry",
    "NavigationSource",
    "Chapter",
    "BookMetadata",
    "ExtractionIssue",
    "ResolvedBook",
    # Chunk models
    "CorpusMarker",
    "Corpus",
    "Segment",
    "ChunkPlan",
    "Chunk",
    "PartitionResult",
    # Output models
    "ExportFormat",
    "ExportSection",
    "ExportDocument",
    "ChunkMetadata",
    "ChunkOutput",
    "SplitManifest",
]
