"""Runtime settings read from ``EPUB_SPLITTER_*`` environment variables."""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_float(value: str | None, *, default: float, minimum: float) -> float:
    if value is None:
        return default
    parsed = float(value)
    return max(minimum, parsed)


@dataclass(frozen=True)
class PartitionSettings:
    """Tunables for the chunk partitioner."""

    max_iterations: int = 5
    tolerance_ratio: float = 0.1
    merge_flexibility: float = 1.2  # merged size may reach max_words * this
    search_window: int = 50
    search_window_ratio: float = 0.1
    min_chunk_words: int = 1


@dataclass(frozen=True)
class Settings:
    library_dir: Path = Path("files")
    log_level: str = "WARNING"
    min_chapter_words: int = 10
    partition: PartitionSettings = field(default_factory=PartitionSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings(
        library_dir=Path(os.getenv("EPUB_SPLITTER_LIBRARY_DIR", "files")),
        log_level=os.getenv("EPUB_SPLITTER_LOG_LEVEL", "WARNING").upper(),
        min_chapter_words=_to_int(
            os.getenv("EPUB_SPLITTER_MIN_CHAPTER_WORDS"), default=10, minimum=0
        ),
        partition=PartitionSettings(
            max_iterations=_to_int(
                os.getenv("EPUB_SPLITTER_MAX_ITERATIONS"), default=5, minimum=0
            ),
            tolerance_ratio=_to_float(
                os.getenv("EPUB_SPLITTER_TOLERANCE_RATIO"), default=0.1, minimum=0.0
            ),
            merge_flexibility=_to_float(
                os.getenv("EPUB_SPLITTER_MERGE_FLEXIBILITY"), default=1.2, minimum=1.0
            ),
            search_window=_to_int(
                os.getenv("EPUB_SPLITTER_SEARCH_WINDOW"), default=50, minimum=0
            ),
            min_chunk_words=_to_int(
                os.getenv("EPUB_SPLITTER_MIN_CHUNK_WORDS"), default=1, minimum=1
            ),
        ),
    )
