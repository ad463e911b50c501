import io
import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from epub_splitter.config import get_settings

CONTAINER_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

XHTML_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head><title>{title}</title><link rel="stylesheet" href="style.css"/></head>
<body>
{body}
</body>
</html>
"""

# 17 words, ends a sentence
SENTENCE = "The quick brown fox jumps over the lazy dog while the river runs past the old mill."


def paragraphs(count: int = 2) -> str:
    return "\n".join(f"<p>{SENTENCE}</p>" for _ in range(count))


def xhtml(body: str, title: str = "Document") -> str:
    return XHTML_TEMPLATE.format(title=title, body=body)


def nav_list(entries: list[tuple]) -> str:
    """Render ``(href, title[, children])`` tuples as a nested ``ol``."""
    items = []
    for entry in entries:
        href, title = entry[0], entry[1]
        children = entry[2] if len(entry) > 2 else []
        nested = nav_list(children) if children else ""
        items.append(f'<li><a href="{href}">{title}</a>{nested}</li>')
    return f"<ol>{''.join(items)}</ol>"


def nav_document(entries: list[tuple]) -> str:
    return xhtml(
        f'<nav epub:type="toc" id="toc"><h1>Contents</h1>{nav_list(entries)}</nav>',
        title="Navigation",
    )


def ncx_points(entries: list[tuple], prefix: str = "np") -> str:
    points = []
    for i, entry in enumerate(entries):
        src, title = entry[0], entry[1]
        children = entry[2] if len(entry) > 2 else []
        point_id = f"{prefix}-{i}"
        points.append(
            f'<navPoint id="{point_id}" playOrder="{i + 1}">'
            f"<navLabel><text>{title}</text></navLabel>"
            f'<content src="{src}"/>'
            f"{ncx_points(children, point_id) if children else ''}"
            "</navPoint>"
        )
    return "".join(points)


def ncx_document(entries: list[tuple]) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">'
        "<head></head><docTitle><text>Book</text></docTitle>"
        f"<navMap>{ncx_points(entries)}</navMap></ncx>"
    )


def package_document(
    items: list[tuple[str, str, str, str]],
    spine: list[str | tuple[str, str]],
    title: str | None = "Test Book",
    author: str | None = "Jane Writer",
) -> str:
    """``items`` are ``(id, href, media_type, properties)``."""
    metadata = []
    if title is not None:
        metadata.append(f"<dc:title>{title}</dc:title>")
    if author is not None:
        metadata.append(f"<dc:creator>{author}</dc:creator>")

    manifest = []
    for item_id, href, media_type, properties in items:
        props = f' properties="{properties}"' if properties else ""
        manifest.append(
            f'<item id="{item_id}" href="{href}" media-type="{media_type}"{props}/>'
        )

    itemrefs = []
    for ref in spine:
        if isinstance(ref, tuple):
            itemrefs.append(f'<itemref idref="{ref[0]}" linear="{ref[1]}"/>')
        else:
            itemrefs.append(f'<itemref idref="{ref}"/>')

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="uid">'
        '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/">'
        f"{''.join(metadata)}</metadata>"
        f"<manifest>{''.join(manifest)}</manifest>"
        f"<spine>{''.join(itemrefs)}</spine>"
        "</package>"
    )


def zip_files(files: dict[str, str | bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        for path, content in files.items():
            zf.writestr(path, content)
    return buffer.getvalue()


def build_epub(
    chapters: list[tuple[str, str]],
    toc: str | None = "nav",
    toc_entries: list[tuple] | None = None,
    spine: list | None = None,
    title: str | None = "Test Book",
    author: str | None = "Jane Writer",
    nav_override: str | None = None,
) -> bytes:
    """Build an EPUB under ``OEBPS/`` from ``(filename, body_html)`` pairs.

    ``toc`` is ``"nav"``, ``"ncx"``, ``"both"`` or None. ``toc_entries`` defaults
    to one entry per chapter titled "Title <n>", hrefs relative to ``OEBPS/``.
    """
    items = []
    files: dict[str, str | bytes] = {
        "META-INF/container.xml": CONTAINER_TEMPLATE.format(opf_path="OEBPS/content.opf"),
    }
    for i, (filename, body) in enumerate(chapters):
        items.append((f"ch{i + 1}", f"Text/{filename}", "application/xhtml+xml", ""))
        files[f"OEBPS/Text/{filename}"] = xhtml(body, title=f"Doc {i + 1}")

    if toc_entries is None:
        toc_entries = [
            (f"Text/{filename}", f"Title {i + 1}") for i, (filename, _) in enumerate(chapters)
        ]

    if toc in ("nav", "both"):
        items.append(("nav", "nav.xhtml", "application/xhtml+xml", "nav"))
        files["OEBPS/nav.xhtml"] = nav_override or nav_document(toc_entries)
    if toc in ("ncx", "both"):
        items.append(("ncx", "toc.ncx", "application/x-dtbncx+xml", ""))
        files["OEBPS/toc.ncx"] = ncx_document(toc_entries)

    if spine is None:
        spine = [f"ch{i + 1}" for i in range(len(chapters))]

    files["OEBPS/content.opf"] = package_document(items, spine, title, author)
    return zip_files(files)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def epub_builder() -> Callable[..., bytes]:
    return build_epub


@pytest.fixture
def sample_epub() -> bytes:
    """Three chapters with an EPUB3 nav that lists them out of spine order."""
    return build_epub(
        [
            ("ch1.xhtml", f"<h2>Opening</h2>{paragraphs(2)}"),
            ("ch2.xhtml", f"<h2>Middle</h2>{paragraphs(3)}"),
            ("ch3.xhtml", f"<h2>Closing</h2>{paragraphs(2)}"),
        ],
        toc_entries=[
            ("Text/ch2.xhtml", "Second Part"),
            ("Text/ch1.xhtml", "First Part"),
            ("Text/ch3.xhtml", "Third Part"),
        ],
    )


@pytest.fixture
def sample_epub_path(tmp_path: Path, sample_epub: bytes) -> Path:
    path = tmp_path / "sample.epub"
    path.write_bytes(sample_epub)
    return path
