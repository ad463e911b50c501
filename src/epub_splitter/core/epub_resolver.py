"""Resolve an EPUB archive into metadata and an ordered chapter list."""

from __future__ import annotations

import logging
import posixpath

from bs4 import BeautifulSoup

from epub_splitter.config import get_settings
from epub_splitter.core.archive import EpubArchive, resolve_href
from epub_splitter.core.content_processor import ContentProcessor, count_words
from epub_splitter.core.navigation import parse_ncx_document, parse_nav_document
from epub_splitter.errors import (
    ChapterExtractionError,
    NavigationError,
    StructuralError,
)
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

log = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
NCX_MEDIA_TYPE = "application/x-dtbncx+xml"


def _text_of(parent, name: str) -> str:
    if parent is None:
        return ""
    element = parent.find(name)
    return element.get_text(strip=True) if element is not None else ""


class EpubResolver:
    """Resolve EPUB structure from raw archive bytes.

    Chapters come from the table of contents when the book has a usable one and
    from the spine otherwise. Only a missing container, rootfile or package
    document is fatal; anything else is recorded in ``ResolvedBook.warnings``.
    """

    def __init__(self, min_chapter_words: int | None = None):
        if min_chapter_words is None:
            min_chapter_words = get_settings().min_chapter_words
        self.min_chapter_words = min_chapter_words
        self.processor = ContentProcessor()

    def resolve(self, data: bytes, filename: str = "") -> ResolvedBook:
        """Resolve the archive and return its chapters in spine order.

        Raises:
            StructuralError: If the archive has no container, rootfile or
                package document
        """
        with EpubArchive(data) as archive:
            opf_path = self._find_package_path(archive)
            opf = BeautifulSoup(archive.read_text(opf_path), "xml")
            base_path = posixpath.dirname(opf_path)

            metadata = self._get_metadata(opf)
            manifest = self._get_manifest(opf, base_path)
            spine = self._get_spine(opf)
            warnings: list[ExtractionIssue] = []

            source = NavigationSource.SPINE
            navigation: list[NavigationEntry] = []
            try:
                source, navigation = self._get_navigation(archive, manifest)
            except NavigationError as e:
                log.warning("Navigation parsing failed for %s: %s", filename, e)
                warnings.append(
                    ExtractionIssue(
                        context="navigation",
                        message=f"Navigation parsing failed: {e}",
                    )
                )

            chapters: list[Chapter] = []
            if navigation:
                chapters = self._chapters_from_navigation(
                    archive, manifest, spine, navigation, warnings
                )
                if not chapters and spine:
                    log.warning(
                        "No chapters kept from navigation for %s, using spine order",
                        filename or "<bytes>",
                    )
                    warnings.append(
                        ExtractionIssue(
                            context="navigation",
                            message="No chapters found through navigation, "
                            "falling back to spine order",
                        )
                    )

            if not chapters:
                source = NavigationSource.SPINE
                chapters = self._chapters_from_spine(archive, manifest, spine, warnings)

        log.debug(
            "Resolved %s: %d chapter(s) via %s, %d issue(s)",
            filename or "<bytes>",
            len(chapters),
            source.value,
            len(warnings),
        )
        return ResolvedBook(
            filename=filename,
            metadata=metadata,
            chapters=sorted(chapters, key=lambda ch: ch.spine_order),
            navigation_source=source,
            warnings=warnings,
        )

    def _find_package_path(self, archive: EpubArchive) -> str:
        if CONTAINER_PATH not in archive:
            raise StructuralError(
                f"Missing {CONTAINER_PATH} - not a valid EPUB", path=CONTAINER_PATH
            )

        container = BeautifulSoup(archive.read_text(CONTAINER_PATH), "xml")
        rootfile = container.find("rootfile")
        opf_path = (rootfile.get("full-path") or "").strip() if rootfile else ""
        if not opf_path:
            raise StructuralError(
                f"No rootfile found in {CONTAINER_PATH}", path=CONTAINER_PATH
            )

        if opf_path not in archive:
            raise StructuralError(f"OPF file not found: {opf_path}", path=opf_path)
        return opf_path

    def _get_metadata(self, opf: BeautifulSoup) -> BookMetadata:
        """Extract book metadata."""
        metadata = opf.find("metadata")
        return BookMetadata(
            title=_text_of(metadata, "title") or "Unknown Title",
            author=_text_of(metadata, "creator") or "Unknown Author",
        )

    def _get_manifest(
        self, opf: BeautifulSoup, base_path: str
    ) -> dict[str, ManifestEntry]:
        """Map manifest ids to entries, keeping document order."""
        manifest: dict[str, ManifestEntry] = {}
        manifest_el = opf.find("manifest")
        if manifest_el is None:
            return manifest

        for item in manifest_el.find_all("item"):
            item_id = item.get("id")
            href = item.get("href")
            if not item_id or not href:
                continue
            manifest[item_id] = ManifestEntry(
                id=item_id,
                path=resolve_href(base_path, href),
                media_type=item.get("media-type") or "",
                properties=frozenset((item.get("properties") or "").split()),
            )
        return manifest

    def _get_spine(self, opf: BeautifulSoup) -> list[SpineEntry]:
        """Get reading order from spine."""
        spine_el = opf.find("spine")
        if spine_el is None:
            return []

        itemrefs = [ref for ref in spine_el.find_all("itemref") if ref.get("idref")]
        return [
            SpineEntry(
                idref=ref["idref"],
                order=order,
                linear=ref.get("linear") != "no",
            )
            for order, ref in enumerate(itemrefs)
        ]

    def _get_navigation(
        self, archive: EpubArchive, manifest: dict[str, ManifestEntry]
    ) -> tuple[NavigationSource, list[NavigationEntry]]:
        """Parse the EPUB3 nav document, else the NCX, else nothing."""
        nav_item = next(
            (
                item
                for item in manifest.values()
                if "nav" in item.properties and item.path in archive
            ),
            None,
        )
        if nav_item is not None:
            log.debug("Using EPUB3 navigation document %s", nav_item.path)
            return NavigationSource.EPUB3_NAV, self._parse_navigation_file(
                archive, nav_item.path, parse_nav_document
            )

        ncx_item = next(
            (
                item
                for item in manifest.values()
                if item.media_type == NCX_MEDIA_TYPE and item.path in archive
            ),
            None,
        )
        if ncx_item is not None:
            log.debug("Using EPUB2 NCX %s", ncx_item.path)
            return NavigationSource.EPUB2_NCX, self._parse_navigation_file(
                archive, ncx_item.path, parse_ncx_document
            )

        log.debug("No navigation source, falling back to spine order")
        return NavigationSource.SPINE, []

    def _parse_navigation_file(self, archive: EpubArchive, path: str, parse):
        try:
            return parse(archive.read_text(path), posixpath.dirname(path))
        except NavigationError:
            raise
        except Exception as e:
            raise NavigationError(f"{path}: {e}") from e

    def _find_manifest_item(
        self, manifest: dict[str, ManifestEntry], entry: NavigationEntry
    ) -> ManifestEntry | None:
        """Find the manifest entry a navigation entry points at.

        An exact archive path match wins; otherwise the first entry whose path ends
        with or contains the href, in manifest order.
        """
        resolved = resolve_href(entry.base_path, entry.href)
        for item in manifest.values():
            if item.path == resolved:
                return item

        href = resolve_href("", entry.href)
        while href.startswith("../"):
            href = href[3:]
        if not href:
            return None
        for item in manifest.values():
            if item.path.endswith(href) or href in item.path:
                return item
        return None

    def _spine_order(
        self, spine: list[SpineEntry], item: ManifestEntry
    ) -> int:
        for spine_entry in spine:
            if spine_entry.idref == item.id:
                return spine_entry.order
        # Not in the reading order; sort after everything that is
        return len(spine)

    def _chapters_from_navigation(
        self,
        archive: EpubArchive,
        manifest: dict[str, ManifestEntry],
        spine: list[SpineEntry],
        navigation: list[NavigationEntry],
        warnings: list[ExtractionIssue],
    ) -> list[Chapter]:
        """Extract chapters in navigation order, skipping near-empty ones."""
        chapters: list[Chapter] = []
        processed: set[tuple[str, str]] = set()

        for entry in navigation:
            if not entry.href:
                continue

            item = self._find_manifest_item(manifest, entry)
            if item is None or item.path not in archive:
                log.debug("No content document for navigation entry %r", entry.title)
                continue

            key = (item.path, entry.raw_href)
            if key in processed:
                continue
            processed.add(key)

            try:
                html, text = self._extract_content(
                    archive, item.path, entry.title, entry.fragment
                )
            except ChapterExtractionError as e:
                self._record_failure(e, warnings)
                continue

            word_count = count_words(text)
            if word_count <= self.min_chapter_words:
                log.debug(
                    "Dropping %r: %d word(s) is below the chapter floor",
                    entry.title,
                    word_count,
                )
                continue

            chapters.append(
                Chapter(
                    id=entry.id,
                    title=entry.title,
                    html_content=html,
                    text_content=text,
                    word_count=word_count,
                    spine_order=self._spine_order(spine, item),
                    source_path=item.path,
                )
            )

        return chapters

    def _chapters_from_spine(
        self,
        archive: EpubArchive,
        manifest: dict[str, ManifestEntry],
        spine: list[SpineEntry],
        warnings: list[ExtractionIssue],
    ) -> list[Chapter]:
        """Extract one chapter per spine entry, without any word floor."""
        chapters: list[Chapter] = []

        for spine_entry in spine:
            item = manifest.get(spine_entry.idref)
            if item is None or item.path not in archive:
                continue

            try:
                html, text = self._extract_content(archive, item.path, spine_entry.idref)
            except ChapterExtractionError as e:
                self._record_failure(e, warnings)
                continue

            filename = posixpath.basename(item.path)
            chapters.append(
                Chapter(
                    id=f"spine-{spine_entry.order}",
                    title=f"Chapter {spine_entry.order + 1} ({filename})",
                    html_content=html,
                    text_content=text,
                    word_count=count_words(text),
                    spine_order=spine_entry.order,
                    source_path=item.path,
                )
            )

        return chapters

    def _extract_content(
        self,
        archive: EpubArchive,
        path: str,
        context: str,
        fragment: str | None = None,
    ) -> tuple[str, str]:
        """Return cleaned HTML and plain text for one content document."""
        try:
            html = self.processor.clean_html(archive.read_text(path))
            if fragment:
                html = self.processor.extract_fragment(html, fragment) or html
            return html, self.processor.to_plain_text(html)
        except Exception as e:
            raise ChapterExtractionError(context, f"{path}: {e}") from e

    def _record_failure(
        self, error: ChapterExtractionError, warnings: list[ExtractionIssue]
    ) -> None:
        log.warning("Failed to extract chapter %s: %s", error.context, error.message)
        warnings.append(ExtractionIssue(context=error.context, message=error.message))


def resolve(data: bytes, filename: str = "") -> ResolvedBook:
    """Resolve archive bytes with default settings."""
    return EpubResolver().resolve(data, filename)
