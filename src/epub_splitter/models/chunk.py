"""Data models for corpus partitioning."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class CorpusMarker:
    """Absolute word interval ``[start, end)`` of one chapter in the corpus."""

    title: str
    start: int
    end: int


@dataclass(frozen=True)
class Corpus:
    """All chapter text concatenated and split into words."""

    text: str
    words: tuple[str, ...]
    markers: tuple[CorpusMarker, ...]

    @property
    def total_words(self) -> int:
        return len(self.words)


@dataclass(frozen=True)
class Segment:
    """Working chunk during refinement: a half-open slice of the corpus words."""

    start: int
    end: int

    @property
    def word_count(self) -> int:
        return self.end - self.start


class ChunkPlan(BaseModel):
    """Target size and tolerance band for a requested chunk count."""

    model_config = ConfigDict(frozen=True)

    total_words: int
    chunk_count: int
    target_words: int
    tolerance: int

    @property
    def min_words(self) -> int:
        return self.target_words - self.tolerance

    @property
    def max_words(self) -> int:
        return self.target_words + self.tolerance

    def within_tolerance(self, word_count: int) -> bool:
        return self.min_words <= word_count <= self.max_words


class Chunk(BaseModel):
    """Final chunk, ready for display or export."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    index: int
    text_content: str
    html_content: str
    word_count: int
    start_word_index: int
    end_word_index: int
    start_chapter: str = "Unknown"
    end_chapter: str = "Unknown"


class PartitionResult(BaseModel):
    """Outcome of a partitioning run."""

    model_config = ConfigDict(frozen=True)

    plan: ChunkPlan
    chunks: list[Chunk] = Field(default_factory=list)
    iterations: int = 0
    converged: bool = False
