"""Partition chapter text into a requested number of similar-sized chunks.

All chapters are joined into one word sequence. After an even initial split the
segments are refined in passes: oversized segments are split at the best nearby
break point, undersized ones are merged forward, and the count is then forced back
to the requested number. Refinement stops as soon as every segment lies inside
the tolerance band, or when the pass budget runs out.
"""

from __future__ import annotations

import html
import logging
import math

from epub_splitter.config import PartitionSettings, get_settings
from epub_splitter.errors import ValidationError
from epub_splitter.models.book import Chapter
from epub_splitter.models.chunk import (
    Chunk,
    ChunkPlan,
    Corpus,
    CorpusMarker,
    PartitionResult,
    Segment,
)

log = logging.getLogger(__name__)

TRANSITION_WORDS = (
    "however",
    "therefore",
    "meanwhile",
    "furthermore",
    "moreover",
    "consequently",
)


def validate_chunk_count(value: int | str) -> int:
    """Parse a requested chunk count.

    Raises:
        ValidationError: If the value is not an integer or is below 2
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid chunk count: {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid chunk count: {value!r}") from None
    if not isinstance(value, int):
        raise ValidationError(f"Invalid chunk count: {value!r}")
    if value < 2:
        raise ValidationError(
            f"Please enter a valid number of chunks (minimum 2), got {value}"
        )
    return value


def build_corpus(chapters: list[Chapter]) -> Corpus:
    """Concatenate chapter text in spine order, recording each chapter's words."""
    parts = []
    markers = []
    position = 0

    for chapter in sorted(chapters, key=lambda ch: ch.spine_order):
        text = chapter.text_content or ""
        word_count = len(text.split())
        markers.append(CorpusMarker(chapter.title, position, position + word_count))
        parts.append(text + "\n\n")
        position += word_count

    text = "".join(parts)
    return Corpus(text=text, words=tuple(text.split()), markers=tuple(markers))


def make_plan(total_words: int, chunk_count: int, tolerance_ratio: float) -> ChunkPlan:
    target = total_words // chunk_count
    return ChunkPlan(
        total_words=total_words,
        chunk_count=chunk_count,
        target_words=target,
        tolerance=math.floor(target * tolerance_ratio),
    )


def calculate_break_point_score(words: tuple[str, ...] | list[str], index: int) -> int:
    """Score how natural a boundary before ``words[index]`` is."""
    if index <= 0 or index >= len(words):
        return 0

    score = 0
    before = words[index - 1]
    after = words[index]

    if before.endswith((".", "!", "?")):
        score += 100
    if "\n\n" in before or "\n\n" in after:
        score += 80
    if before.endswith((".", "!", "?", ";", ":")):
        score += 60
    if after[:1].isascii() and after[:1].isupper():
        score += 40
    if "chapter" in before.lower() or "chapter" in after.lower():
        score += 90
    if after.lower().startswith(TRANSITION_WORDS):
        score += 30

    return score


def find_optimal_split_point(
    words: tuple[str, ...] | list[str],
    desired: int,
    settings: PartitionSettings | None = None,
) -> int:
    """Best scoring boundary near ``desired``; ties keep ``desired``.

    The result always leaves at least one word on each side when ``words`` has
    two or more.
    """
    settings = settings or PartitionSettings()
    length = len(words)
    window = min(settings.search_window, math.floor(length * settings.search_window_ratio))
    lo = max(1, desired - window)
    hi = min(length - 1, desired + window)

    best = desired
    best_score = calculate_break_point_score(words, desired)
    for index in range(lo, hi + 1):
        score = calculate_break_point_score(words, index)
        if score > best_score:
            best = index
            best_score = score

    if length >= 2:
        best = min(max(best, 1), length - 1)
    return best


def initial_split(total_words: int, chunk_count: int) -> tuple[Segment, ...]:
    """Even split; the last segment takes the remainder."""
    size = total_words // chunk_count
    return tuple(
        Segment(i * size, total_words if i == chunk_count - 1 else (i + 1) * size)
        for i in range(chunk_count)
    )


def _split_segment(
    words: tuple[str, ...], segment: Segment, settings: PartitionSettings
) -> tuple[Segment, Segment]:
    local = words[segment.start : segment.end]
    split = find_optimal_split_point(local, len(local) // 2, settings)
    return Segment(segment.start, segment.start + split), Segment(
        segment.start + split, segment.end
    )


def is_converged(segments: tuple[Segment, ...], plan: ChunkPlan) -> bool:
    return len(segments) == plan.chunk_count and all(
        plan.within_tolerance(segment.word_count) for segment in segments
    )


def refine_once(
    segments: tuple[Segment, ...],
    words: tuple[str, ...],
    plan: ChunkPlan,
    settings: PartitionSettings,
) -> tuple[Segment, ...]:
    """Run one refinement pass and return the new segments."""
    refined: list[Segment] = []
    merge_limit = plan.max_words * settings.merge_flexibility

    i = 0
    while i < len(segments):
        segment = segments[i]
        if segment.word_count > plan.max_words and segment.word_count >= 2:
            refined.extend(_split_segment(words, segment, settings))
        elif segment.word_count < plan.min_words and i < len(segments) - 1:
            following = segments[i + 1]
            if segment.word_count + following.word_count <= merge_limit:
                refined.append(Segment(segment.start, following.end))
                i += 1
            else:
                refined.append(segment)
        else:
            refined.append(segment)
        i += 1

    while len(refined) > plan.chunk_count:
        # The last segment is only ever absorbed, never picked
        smallest = 0
        for j in range(1, len(refined) - 1):
            if refined[j].word_count < refined[smallest].word_count:
                smallest = j
        first = smallest - 1 if smallest > 0 else 0
        merged = Segment(refined[first].start, refined[first + 1].end)
        refined[first : first + 2] = [merged]

    while len(refined) < plan.chunk_count:
        largest = max(range(len(refined)), key=lambda j: refined[j].word_count)
        refined[largest : largest + 1] = _split_segment(
            words, refined[largest], settings
        )

    return tuple(refined)


def refine(
    segments: tuple[Segment, ...],
    words: tuple[str, ...],
    plan: ChunkPlan,
    settings: PartitionSettings,
) -> tuple[tuple[Segment, ...], int]:
    """Refine until converged or out of passes; returns segments and passes used."""
    iterations = 0
    while iterations < settings.max_iterations and not is_converged(segments, plan):
        segments = refine_once(segments, words, plan, settings)
        iterations += 1
        log.debug(
            "Refinement pass %d: sizes %s",
            iterations,
            [segment.word_count for segment in segments],
        )
    return segments, iterations


def chapter_at(markers: tuple[CorpusMarker, ...], position: int) -> str:
    for marker in markers:
        if marker.start <= position < marker.end:
            return marker.title
    return markers[-1].title if markers else "Unknown"


def finalize_chunks(segments: tuple[Segment, ...], corpus: Corpus) -> list[Chunk]:
    """Number segments from 1 and attach text, HTML and chapter range."""
    chunks = []
    for index, segment in enumerate(segments):
        text = " ".join(corpus.words[segment.start : segment.end])
        chunks.append(
            Chunk(
                id=f"chunk-{index + 1}",
                title=f"Chunk {index + 1}",
                index=index,
                text_content=text,
                html_content=f'<div class="chunk-content">{html.escape(text)}</div>',
                word_count=segment.word_count,
                start_word_index=segment.start,
                end_word_index=segment.end,
                start_chapter=chapter_at(corpus.markers, segment.start),
                end_chapter=chapter_at(corpus.markers, segment.end - 1),
            )
        )
    return chunks


class ChunkPartitioner:
    """Split a book's chapters into a fixed number of chunks."""

    def __init__(self, settings: PartitionSettings | None = None):
        self.settings = settings or get_settings().partition

    def plan(self, chapters: list[Chapter], chunk_count: int | str) -> ChunkPlan:
        """Target words per chunk and tolerance band, without splitting."""
        chunk_count = validate_chunk_count(chunk_count)
        corpus = build_corpus(chapters)
        return make_plan(corpus.total_words, chunk_count, self.settings.tolerance_ratio)

    def partition(
        self, chapters: list[Chapter], chunk_count: int | str
    ) -> PartitionResult:
        """Partition chapters into ``chunk_count`` chunks.

        The result is best effort: when the pass budget runs out first,
        ``converged`` is False and sizes or count may miss the target.

        Raises:
            ValidationError: If the count is invalid or the book has too few
                words for it
        """
        chunk_count = validate_chunk_count(chunk_count)
        corpus = build_corpus(chapters)
        floor = self.settings.min_chunk_words
        if corpus.total_words < chunk_count * floor:
            raise ValidationError(
                f"Cannot split {corpus.total_words} word(s) into {chunk_count} "
                f"chunks of at least {floor} word(s)"
            )

        plan = make_plan(corpus.total_words, chunk_count, self.settings.tolerance_ratio)
        log.debug(
            "Partitioning %d words into %d chunks (target %d, tolerance %d)",
            plan.total_words,
            plan.chunk_count,
            plan.target_words,
            plan.tolerance,
        )

        segments = initial_split(corpus.total_words, chunk_count)
        segments, iterations = refine(segments, corpus.words, plan, self.settings)

        return PartitionResult(
            plan=plan,
            chunks=finalize_chunks(segments, corpus),
            iterations=iterations,
            converged=is_converged(segments, plan),
        )


def partition(
    chapters: list[Chapter],
    chunk_count: int | str,
    settings: PartitionSettings | None = None,
) -> list[Chunk]:
    """Partition chapters and return only the chunks."""
    return ChunkPartitioner(settings).partition(chapters, chunk_count).chunks
