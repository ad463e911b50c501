import json

import pytest
from typer.testing import CliRunner

from conftest import zip_files
from epub_splitter.cli import app
from epub_splitter.library.manager import LibraryManager

runner = CliRunner()


def test_info_shows_metadata_and_chapters(sample_epub_path):
    result = runner.invoke(app, ["info", str(sample_epub_path)])

    assert result.exit_code == 0, result.output
    assert "Test Book" in result.output
    assert "Jane Writer" in result.output
    for title in ("First Part", "Second Part", "Third Part"):
        assert title in result.output


def test_info_with_verbose_logging(sample_epub_path):
    result = runner.invoke(app, ["--verbose", "info", str(sample_epub_path)])

    assert result.exit_code == 0, result.output


def test_info_finds_book_in_library(tmp_path, monkeypatch, sample_epub):
    library_dir = tmp_path / "lib"
    LibraryManager(library_dir).save("stored.epub", sample_epub)
    monkeypatch.setenv("EPUB_SPLITTER_LIBRARY_DIR", str(library_dir))
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["info", "stored.epub"])

    assert result.exit_code == 0, result.output
    assert "Test Book" in result.output


def test_info_missing_file(tmp_path):
    result = runner.invoke(app, ["info", str(tmp_path / "nope.epub")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_info_invalid_archive(tmp_path):
    path = tmp_path / "broken.epub"
    path.write_bytes(zip_files({"OEBPS/content.opf": "<package/>"}))

    result = runner.invoke(app, ["info", str(path)])

    assert result.exit_code == 1
    assert "not a valid EPUB" in result.output


class TestSplit:
    def test_preview_only_reports_plan(self, sample_epub_path):
        result = runner.invoke(
            app, ["split", str(sample_epub_path), "--chunks", "4", "--preview"]
        )

        assert result.exit_code == 0, result.output
        assert "Chunk Preview" in result.output
        assert "27-33" in result.output
        assert not (sample_epub_path.parent / "sample_chunks").exists()

    def test_writes_chunks_and_manifest(self, sample_epub_path, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(
            app,
            ["split", str(sample_epub_path), "-n", "2", "-o", str(out), "-q", "--combined"],
        )

        assert result.exit_code == 0, result.output
        assert (out / "chunk_001.json").exists()
        assert (out / "chunk_002.json").exists()
        assert (out / "sample_chunks.txt").exists()
        manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["chunk_count"] == 2
        assert manifest["written_chunks"] == [0, 1]

    def test_selected_chunks_only(self, sample_epub_path):
        result = runner.invoke(app, ["split", str(sample_epub_path), "-n", "3", "-s", "2", "-q"])

        out = sample_epub_path.parent / "sample_chunks"
        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.glob("chunk_*.json")) == ["chunk_002.json"]

    @pytest.mark.parametrize("count", ["1", "zero"])
    def test_invalid_chunk_count(self, sample_epub_path, count):
        result = runner.invoke(app, ["split", str(sample_epub_path), "-n", count, "-q"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_format(self, sample_epub_path):
        result = runner.invoke(app, ["split", str(sample_epub_path), "-n", "2", "-f", "pdf"])

        assert result.exit_code == 1
        assert "Invalid format" in result.output


class TestExport:
    def test_export_to_file(self, sample_epub_path, tmp_path):
        output = tmp_path / "export.txt"
        result = runner.invoke(
            app,
            ["export", str(sample_epub_path), "-s", "1,3", "-o", str(output), "-f", "text", "-q"],
        )

        assert result.exit_code == 0, result.output
        text = output.read_text(encoding="utf-8")
        assert "First Part" in text
        assert "Third Part" in text
        assert "Second Part" not in text

    def test_export_default_path(self, sample_epub_path):
        result = runner.invoke(app, ["export", str(sample_epub_path), "-q"])

        assert result.exit_code == 0, result.output
        html = (sample_epub_path.parent / "sample_chapters.html").read_text(encoding="utf-8")
        assert html.startswith('<div class="export-document">')

    def test_export_to_stdout(self, sample_epub_path):
        result = runner.invoke(
            app, ["export", str(sample_epub_path), "-o", "-", "-f", "markdown", "-q"]
        )

        assert result.exit_code == 0, result.output
        assert "## Second Part" in result.output


def test_library_add_list_remove(tmp_path, sample_epub_path):
    library_dir = tmp_path / "library"

    added = runner.invoke(app, ["library", "add", str(sample_epub_path), "--dir", str(library_dir)])
    listed = runner.invoke(app, ["library", "list", "-d", str(library_dir)])
    removed = runner.invoke(app, ["library", "remove", "sample.epub", "-d", str(library_dir)])
    missing = runner.invoke(app, ["library", "remove", "sample.epub", "-d", str(library_dir)])

    assert added.exit_code == 0, added.output
    assert "Added sample.epub" in added.output
    assert "sample.epub" in listed.output
    assert removed.exit_code == 0
    assert "deleted successfully" in removed.output
    assert missing.exit_code == 1
    assert "File not found" in missing.output


def test_library_list_empty(tmp_path):
    result = runner.invoke(app, ["library", "list", "-d", str(tmp_path / "none")])

    assert result.exit_code == 0
    assert "No EPUB files in library" in result.output
