"""Tests for ingesters and documentation aggregation."""

import zipfile

import pytest

from ctxpack.errors import InvalidParameter
from ctxpack.ingesters import (
    FolderIngester,
    TocEntry,
    ZipIngester,
    aggregate,
    detect_strategy,
    extract_title,
    get_ingester,
    load_documents,
    register_ingester,
)
from ctxpack.ingesters import registry
from ctxpack.ingesters.aggregator import SEPARATOR, make_preview
from ctxpack.models import DecompositionStrategy, SourceFile
from ctxpack.utils.binary import decode_text, is_binary_content


def _doc(path: str, content: str) -> SourceFile:
    return SourceFile(
        path=path,
        size_bytes=len(content.encode()),
        extension="." + path.rsplit(".", 1)[-1],
        is_binary=False,
        content=content,
    )


def _entry(path: str, size: int = 100) -> TocEntry:
    return TocEntry(path=path, title="t", size_bytes=size, line_count=1, preview="p")


class TestFolderIngester:
    """Tests for walking folders."""

    def test_walk_skips_hidden_and_marks_binary(self, docs_dir):
        files = list(FolderIngester().ingest(docs_dir))

        assert [f.path for f in files] == ["a.md", "b.md", "logo.png", "release-notes.txt", "guide/c.md"]
        logo = next(f for f in files if f.path == "logo.png")
        assert logo.is_binary is True
        assert logo.content is None

    def test_ignored_directories(self, tmp_path):
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "dep.md").write_text("# Dep\n")
        (tmp_path / "keep.md").write_text("# Keep\n")

        assert [f.path for f in FolderIngester().ingest(tmp_path)] == ["keep.md"]

    def test_get_ingester(self, docs_dir, tmp_path):
        archive = tmp_path / "docs.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("x.md", "# X\n")

        assert isinstance(get_ingester(docs_dir), FolderIngester)
        assert isinstance(get_ingester(archive), ZipIngester)
        assert get_ingester(docs_dir / "a.md") is None


class MarkdownFileIngester:
    """Reads a single Markdown file as a one-file source."""

    source_type = "markdown-file"

    def can_handle(self, source):
        return source.suffix == ".md" and source.is_file()

    def ingest(self, source):
        content = source.read_text()
        yield SourceFile(
            path=source.name,
            size_bytes=len(content.encode()),
            extension=".md",
            is_binary=False,
            content=content,
        )


class TestRegistry:
    """Tests for registering extra ingesters."""

    @pytest.fixture(autouse=True)
    def isolated_registry(self, monkeypatch):
        monkeypatch.setattr(registry, "_INGESTERS", list(registry._INGESTERS))

    def test_registered_ingester_is_used(self, docs_dir):
        register_ingester(MarkdownFileIngester())

        documents = load_documents(docs_dir / "a.md")

        assert [e.path for e in documents.entries] == ["a.md"]
        assert documents.entries[0].title == "Alpha"

    def test_first_takes_precedence(self, docs_dir):
        custom = MarkdownFileIngester()
        custom.can_handle = lambda source: True
        register_ingester(custom, first=True)

        assert get_ingester(docs_dir) is custom

    def test_rejects_non_ingesters(self):
        with pytest.raises(TypeError):
            register_ingester(object())


class TestZipIngester:
    """Tests for reading archives."""

    def test_members_in_name_order(self, tmp_path):
        archive = tmp_path / "docs.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("z.md", "# Zed\n")
            zf.writestr("dir/", "")
            zf.writestr("a.txt", "plain")
            zf.writestr(".git/config", "[core]")
            zf.writestr("img.png", b"\x89PNG\x00")

        files = list(ZipIngester().ingest(archive))

        assert [f.path for f in files] == ["a.txt", "img.png", "z.md"]
        assert files[0].content == "plain"
        assert files[1].is_binary is True

    def test_load_documents_from_zip(self, tmp_path):
        archive = tmp_path / "docs.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("guide.md", "# Guide\nsteps\n")

        documents = load_documents(archive)

        assert documents.file_count == 1
        assert documents.entries[0].title == "Guide"


class TestAggregate:
    """Tests for concatenating documentation."""

    def test_folder_aggregate(self, docs_dir):
        documents = load_documents(docs_dir)

        assert [e.path for e in documents.entries] == ["a.md", "b.md", "guide/c.md", "release-notes.txt"]
        assert [e.title for e in documents.entries] == ["Alpha", "B", "Gamma", "Release Notes"]
        assert documents.total_size == sum(
            (docs_dir / e.path).stat().st_size for e in documents.entries
        )

    def test_offsets_point_at_file_headers(self, docs_dir):
        documents = load_documents(docs_dir)

        for entry in documents.entries:
            assert documents.content[entry.offset :].startswith(f"--- FILE: {entry.path} ---\n")

    def test_block_layout(self):
        documents = aggregate([_doc("one.md", "# One\nbody")])

        assert documents.content == "\n".join(
            [
                "--- FILE: one.md ---",
                "Title: One",
                "Size: 10 bytes, Lines: 2",
                "",
                "# One\nbody",
                "",
                SEPARATOR,
                "",
            ]
        )

    def test_non_documentation_dropped(self):
        documents = aggregate([_doc("a.md", "text"), _doc("b.py", "print(1)")])

        assert [e.path for e in documents.entries] == ["a.md"]

    def test_nothing_to_aggregate(self):
        with pytest.raises(InvalidParameter):
            aggregate([_doc("main.py", "print(1)")])

    def test_unsupported_source(self, tmp_path):
        with pytest.raises(InvalidParameter):
            load_documents(tmp_path / "missing")

    def test_previews(self, docs_dir):
        previews = {e.path: e.preview for e in load_documents(docs_dir).entries}

        assert previews["a.md"] == "First paragraph. Second paragraph."
        assert previews["b.md"] == "Intro line body"
        assert make_preview("# Only a header\n---\n") == "No preview available"
        assert make_preview("y" * 200) == "y" * 150 + "..."


class TestTitlesAndStrategy:
    """Tests for titles and strategy detection."""

    @pytest.mark.parametrize(
        "content, path, expected",
        [
            ("intro\n# Real Title\n", "x.md", "Real Title"),
            ("## Not level one\n", "getting_started.md", "Getting Started"),
            ("", "docs/api-reference.rst", "Api Reference"),
        ],
    )
    def test_extract_title(self, content, path, expected):
        assert extract_title(content, path) == expected

    def test_markdown_heavy_uses_sections(self):
        entries = [_entry("a.md"), _entry("b.md"), _entry("c.mdx"), _entry("d.txt")]

        assert detect_strategy(entries) is DecompositionStrategy.BY_SECTIONS

    def test_large_files_use_fixed_size(self):
        entries = [_entry("a.txt", 60_000), _entry("b.md", 60_000)]

        assert detect_strategy(entries) is DecompositionStrategy.FIXED_SIZE

    def test_default_is_paragraphs(self):
        assert detect_strategy([_entry("a.txt"), _entry("b.md")]) is DecompositionStrategy.BY_PARAGRAPHS
        assert detect_strategy([]) is DecompositionStrategy.BY_PARAGRAPHS


class TestBinaryDetection:
    """Tests for content sniffing."""

    def test_utf8_text_is_not_binary(self):
        assert is_binary_content("Grüße, 世界\n".encode()) is False

    def test_nul_byte_is_binary(self):
        assert is_binary_content(b"abc\x00def") is True

    def test_invalid_utf8_is_binary(self):
        assert is_binary_content(b"\xff\xfe\xfa garbage") is True

    def test_split_character_at_sample_edge(self):
        content = ("a" * 9 + "é" * 10).encode()

        assert is_binary_content(content, sample_size=10) is False

    def test_decode_strips_bom(self):
        assert decode_text(b"\xef\xbb\xbfhello") == "hello"
