"""Flatten EPUB3 navigation documents and EPUB2 NCX files into reading order.

Every node of the table of contents becomes one ``NavigationEntry``; nesting is
walked depth-first and then discarded, so a part heading and the chapters under it
come out as siblings.
"""

from __future__ import annotations

import logging
import warnings

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning

from epub_splitter.errors import NavigationError
from epub_splitter.models.book import NavigationEntry

log = logging.getLogger(__name__)

warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

LIST_TAGS = ["ol", "ul"]


def _split_href(href: str | None) -> tuple[str, str | None]:
    path, _, fragment = (href or "").strip().partition("#")
    return path, fragment or None


def _clean_title(text: str) -> str:
    return " ".join(text.split()) or "Untitled"


def _is_toc_nav(tag: Tag) -> bool:
    if tag.name != "nav":
        return False
    for key, value in tag.attrs.items():
        # "epub:type", or a bare "type" if the prefix got lost
        if key == "type" or key.endswith(":type"):
            if "toc" in str(value).split():
                return True
    return False


def _item_link(li: Tag) -> Tag | None:
    """Link for a list item, ignoring links that belong to a nested list."""
    for child in li.find_all(recursive=False):
        if child.name in LIST_TAGS:
            continue
        if child.name == "a":
            return child
        link = child.find("a")
        if link is not None:
            return link
    return None


def parse_nav_document(markup: str, base_path: str = "") -> list[NavigationEntry]:
    """Parse an EPUB3 navigation document.

    Args:
        markup: Navigation document source
        base_path: Archive directory of the navigation document

    Raises:
        NavigationError: If there is no ``toc`` nav element
    """
    # HTML parsing keeps named entities such as &nbsp; that the XML parser drops
    soup = BeautifulSoup(markup, "lxml")
    toc_nav = soup.find(_is_toc_nav)
    if toc_nav is None:
        raise NavigationError("No TOC navigation found in nav document")

    entries: list[NavigationEntry] = []
    _walk_nav_list(toc_nav.find(LIST_TAGS), base_path, entries)
    return entries


def _walk_nav_list(
    ol: Tag | None,
    base_path: str,
    entries: list[NavigationEntry],
    parent_id: str | None = None,
    depth: int = 0,
) -> None:
    if ol is None:
        return

    for index, li in enumerate(ol.find_all("li", recursive=False)):
        entry_id = f"nav-{parent_id or 'root'}-{index}-{depth}"
        link = _item_link(li)

        if link is not None:
            href, fragment = _split_href(link.get("href"))
            entries.append(
                NavigationEntry(
                    id=entry_id,
                    title=_clean_title(link.get_text()),
                    href=href,
                    fragment=fragment,
                    base_path=base_path,
                )
            )

        _walk_nav_list(
            li.find(LIST_TAGS, recursive=False), base_path, entries, entry_id, depth + 1
        )


def parse_ncx_document(markup: str, base_path: str = "") -> list[NavigationEntry]:
    """Parse an EPUB2 NCX document.

    Raises:
        NavigationError: If the NCX has no ``navMap``
    """
    soup = BeautifulSoup(markup, "xml")
    nav_map = soup.find("navMap")
    if nav_map is None:
        raise NavigationError("No navMap found in NCX file")

    entries: list[NavigationEntry] = []
    _walk_nav_points(nav_map.find_all("navPoint", recursive=False), base_path, entries)
    return entries


def _walk_nav_points(
    nav_points: list[Tag],
    base_path: str,
    entries: list[NavigationEntry],
    parent_id: str | None = None,
    depth: int = 0,
) -> None:
    for index, nav_point in enumerate(nav_points):
        entry_id = f"ncx-{parent_id or 'root'}-{index}-{depth}"
        nav_label = nav_point.find("navLabel", recursive=False)
        label = nav_label.find("text") if nav_label is not None else None
        content = nav_point.find("content", recursive=False)

        if label is not None and content is not None:
            href, fragment = _split_href(content.get("src"))
            entries.append(
                NavigationEntry(
                    id=entry_id,
                    title=_clean_title(label.get_text()),
                    href=href,
                    fragment=fragment,
                    base_path=base_path,
                )
            )
        else:
            log.debug("Skipping navPoint %s without label or content", entry_id)

        _walk_nav_points(
            nav_point.find_all("navPoint", recursive=False),
            base_path,
            entries,
            entry_id,
            depth + 1,
        )
