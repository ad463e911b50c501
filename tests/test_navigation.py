import pytest

from conftest import ncx_document, nav_document, xhtml
from epub_splitter.core.navigation import parse_ncx_document, parse_nav_document
from epub_splitter.errors import NavigationError

TREE = [
    ("part1.xhtml", "Part One", [
        ("ch1.xhtml#start", "Chapter 1"),
        ("ch2.xhtml", "Chapter 2", [("ch2.xhtml#s1", "Section 2.1")]),
    ]),
    ("part2.xhtml", "Part Two"),
]


def test_nav_document_is_flattened_depth_first():
    entries = parse_nav_document(nav_document(TREE), "OEBPS")

    assert [e.title for e in entries] == [
        "Part One", "Chapter 1", "Chapter 2", "Section 2.1", "Part Two",
    ]
    assert [e.href for e in entries] == [
        "part1.xhtml", "ch1.xhtml", "ch2.xhtml", "ch2.xhtml", "part2.xhtml",
    ]
    assert entries[1].fragment == "start"
    assert entries[1].raw_href == "ch1.xhtml#start"
    assert entries[0].fragment is None
    assert all(e.base_path == "OEBPS" for e in entries)


def test_nav_ids_trace_parent_index_and_depth():
    entries = parse_nav_document(nav_document(TREE))

    assert entries[0].id == "nav-root-0-0"
    assert entries[1].id == "nav-nav-root-0-0-0-1"
    assert entries[3].id == "nav-nav-nav-root-0-0-1-1-0-2"
    assert entries[4].id == "nav-root-1-0"


def test_nav_item_without_link_still_walks_children():
    markup = xhtml(
        '<nav epub:type="toc"><ol>'
        '<li><span>Front matter</span><ol><li><a href="a.xhtml">A</a></li></ol></li>'
        '<li><a href="b.xhtml">  B \n title </a></li>'
        "</ol></nav>"
    )
    entries = parse_nav_document(markup)

    assert [(e.title, e.href) for e in entries] == [("A", "a.xhtml"), ("B title", "b.xhtml")]


def test_nav_ignores_non_toc_nav_elements():
    markup = xhtml(
        '<nav epub:type="landmarks"><ol><li><a href="cover.xhtml">Cover</a></li></ol></nav>'
        '<nav epub:type="toc"><ol><li><a href="c.xhtml">C</a></li></ol></nav>'
    )

    assert [e.title for e in parse_nav_document(markup)] == ["C"]


def test_nav_blank_title_becomes_untitled():
    markup = xhtml('<nav epub:type="toc"><ol><li><a href="c.xhtml"> </a></li></ol></nav>')

    assert parse_nav_document(markup)[0].title == "Untitled"


def test_nav_without_toc_raises():
    with pytest.raises(NavigationError, match="No TOC navigation"):
        parse_nav_document(xhtml("<p>No navigation here</p>"))


def test_ncx_is_flattened_without_duplicates():
    entries = parse_ncx_document(ncx_document(TREE), "OEBPS")

    assert [e.title for e in entries] == [
        "Part One", "Chapter 1", "Chapter 2", "Section 2.1", "Part Two",
    ]
    assert entries[3].href == "ch2.xhtml"
    assert entries[3].fragment == "s1"
    assert entries[0].id == "ncx-root-0-0"
    assert entries[2].id == "ncx-ncx-root-0-0-1-1"


def test_ncx_without_navmap_raises():
    with pytest.raises(NavigationError, match="navMap"):
        parse_ncx_document('<?xml version="1.0"?><ncx><head/></ncx>')


def test_nav_titles_keep_html_entities():
    entries = parse_nav_document(nav_document([("p1.xhtml", "Part&nbsp;One &amp; Two")]))

    assert entries[0].title == "Part One & Two"
