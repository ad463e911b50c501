"""Clean EPUB content documents and derive plain text, Markdown and word counts."""

from __future__ import annotations

import re
import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from bs4.element import NavigableString, PreformattedString, Tag
from markdownify import markdownify as md

from epub_splitter.models.output import ExportFormat

# Content documents are XHTML, parsed leniently as HTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

# Removed before content is kept as chapter HTML
UNWANTED_SELECTORS = [
    "script", "style", "link", "meta", "title",
    "img", "svg", "video", "audio", "object", "embed",
    "nav", "header", "footer", ".navigation", "#navigation",
]

# Removed again before deriving plain text
TEXT_UNWANTED_SELECTORS = [
    "script", "style", "nav", "header", "footer",
    ".navigation", "#navigation", ".toc", "#toc",
]

BLOCK_TAGS = ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6"]

# A fragment slice stops at the next of these carrying a different id
SECTION_BOUNDARY_TAGS = {"h1", "h2", "h3", "section", "chapter"}

# An inline or empty fragment target is widened to its nearest one of these
FRAGMENT_BLOCK_TAGS = ["p", "div", "section", "h1", "h2", "h3", "h4", "h5", "h6"]

_WHITESPACE = re.compile(r"\s+")
_WORD_CHAR = re.compile(r"\w")


def _strip_elements(soup: BeautifulSoup, selectors: list[str]) -> None:
    for element in soup.select(", ".join(selectors)):
        # Nested matches are already gone with their ancestor
        if not element.decomposed:
            element.decompose()


def _section_id(tag: Tag) -> str | None:
    """Id a heading or section is known by, its own or that of an anchor inside it."""
    if tag.name not in SECTION_BOUNDARY_TAGS:
        return None
    if tag.get("id"):
        return tag["id"]
    marked = tag.find(id=True)
    return marked["id"] if marked is not None else None


def count_words(text: str) -> int:
    """Count whitespace separated tokens holding at least one word character."""
    if not text or not text.strip():
        return 0
    return sum(1 for word in text.split() if _WORD_CHAR.search(word))


class ContentProcessor:
    """Process EPUB HTML content into chapter HTML, text and Markdown."""

    def clean_html(self, markup: str) -> str:
        """Strip scripts, media and navigation chrome; return the body's inner HTML."""
        soup = BeautifulSoup(markup, "lxml")
        _strip_elements(soup, UNWANTED_SELECTORS)
        body = soup.body or soup
        return body.decode_contents().strip()

    def extract_fragment(self, html: str, fragment_id: str) -> str | None:
        """Slice the section starting at ``fragment_id``.

        Takes the element with that id, or the block holding it when the element is
        inline, plus its following siblings and loose text, stopping at the next
        heading or section that carries a different id. Returns None when the
        fragment is not found or the slice holds no text.
        """
        if not fragment_id or not html:
            return None

        soup = BeautifulSoup(html, "lxml")
        target = soup.find(id=fragment_id)
        if target is None:
            return None

        start = target
        if target.name not in FRAGMENT_BLOCK_TAGS:
            # Inline anchors such as <p><a id="c1"/>...</p> start their block
            start = target.find_parent(FRAGMENT_BLOCK_TAGS) or target

        parts = [str(start)]
        for sibling in start.next_siblings:
            if isinstance(sibling, Tag):
                sibling_id = _section_id(sibling)
                if sibling_id and sibling_id != fragment_id:
                    break
                parts.append(str(sibling))
            elif isinstance(sibling, NavigableString):
                parts.append(sibling.output_ready())

        section = "".join(parts)
        if not BeautifulSoup(section, "lxml").get_text(strip=True):
            return None
        return section

    def to_plain_text(self, html: str) -> str:
        """Extract plain text with paragraph preservation.

        Block elements end with a blank line, list items get a bullet and
        whitespace runs are collapsed.
        """
        if not html or not html.strip():
            return ""

        soup = BeautifulSoup(html, "lxml")
        _strip_elements(soup, TEXT_UNWANTED_SELECTORS)

        # Source formatting whitespace must not survive as line breaks
        for node in soup.find_all(string=True):
            if isinstance(node, PreformattedString):
                node.extract()
            elif isinstance(node, NavigableString):
                node.replace_with(_WHITESPACE.sub(" ", str(node)))

        for br in soup.find_all("br"):
            br.replace_with("\n")
        for li in soup.find_all("li"):
            li.insert_before("• ")
            li.insert_after("\n\n")
        for block in soup.find_all(BLOCK_TAGS):
            block.insert_after("\n\n")

        text = soup.get_text()
        text = re.sub(r"[^\S\n]+", " ", text)
        text = re.sub(r" *\n *", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    def to_markdown(self, html: str) -> str:
        """Convert HTML to clean Markdown."""
        markdown = md(
            html,
            heading_style="ATX",
            bullets="-",
            strip=["a"],  # Remove link formatting but keep text
        )
        # Clean up excessive whitespace
        lines = [line.rstrip() for line in markdown.split("\n")]
        cleaned = []
        prev_blank = False
        for line in lines:
            is_blank = not line.strip()
            if is_blank and prev_blank:
                continue
            cleaned.append(line)
            prev_blank = is_blank

        return "\n".join(cleaned).strip()

    def process(self, html: str, output_format: ExportFormat = "html") -> str:
        """Convert HTML to specified format."""
        if output_format == "text":
            return self.to_plain_text(html)
        elif output_format == "markdown":
            return self.to_markdown(html)
        return html

