"""Tests for decomposition strategies."""

import pytest

from ctxpack.chunkers import (
    FixedSizeChunker,
    LineChunker,
    RegexChunker,
    SectionChunker,
    decompose,
    get_chunker,
    resolve_strategy,
)
from ctxpack.errors import InvalidParameter, InvalidPattern
from ctxpack.models import DecompositionStrategy
from ctxpack.protocols import ChunkingStrategy

SAMPLE = (
    "# Title\n"
    "Opening words. Another sentence!\n"
    "\n"
    "## Part one\n"
    "Paragraph one is here.\n"
    "\n"
    "\n"
    "Paragraph two? Yes.\n"
    "## Part two\n"
    "Closing text without a stop"
)


class TestFixedSize:
    """Tests for fixed-size character chunks."""

    @pytest.mark.parametrize("chunk_size", [1, 3, 7, 100])
    def test_no_overlap_reproduces_text(self, chunk_size):
        chunks = FixedSizeChunker(chunk_size=chunk_size, overlap=0).chunk(SAMPLE)

        assert "".join(c.content for c in chunks) == SAMPLE

    def test_overlap_windows(self):
        chunks = FixedSizeChunker(chunk_size=4, overlap=2).chunk("abcdefghij")

        assert [c.content for c in chunks] == ["abcd", "cdef", "efgh", "ghij", "ij"]
        assert [c.start_offset for c in chunks] == [0, 2, 4, 6, 8]
        assert chunks[-1].end_offset == 10

    def test_overlap_swallowing_window_stops_after_first_chunk(self):
        chunks = FixedSizeChunker(chunk_size=3, overlap=5).chunk("abcdefgh")

        assert len(chunks) == 1
        assert chunks[0].content == "abc"

    def test_invalid_parameters(self):
        with pytest.raises(InvalidParameter):
            FixedSizeChunker(chunk_size=0)
        with pytest.raises(InvalidParameter):
            FixedSizeChunker(chunk_size=10, overlap=-1)


class TestLines:
    """Tests for line chunks."""

    def test_two_line_chunks_offsets(self):
        chunks = LineChunker(lines_per_chunk=2, overlap=0).chunk("line1\nline2\nline3\nline4")

        assert [(c.content, c.start_offset, c.end_offset) for c in chunks] == [
            ("line1\nline2", 0, 11),
            ("line3\nline4", 12, 23),
        ]
        assert chunks[0].metadata == {"start_line": 0, "end_line": 1}
        assert chunks[1].metadata == {"start_line": 2, "end_line": 3}

    def test_empty_text_has_no_chunks(self):
        assert LineChunker().chunk("") == []

    def test_single_line_is_one_chunk(self):
        chunks = LineChunker(lines_per_chunk=5, overlap=0).chunk("only line")

        assert len(chunks) == 1
        assert chunks[0].content == "only line"

    def test_trailing_newline_does_not_add_a_line(self):
        with_newline = LineChunker(lines_per_chunk=1, overlap=0).chunk("a\nb\n")
        without = LineChunker(lines_per_chunk=1, overlap=0).chunk("a\nb")

        assert [c.to_dict() for c in with_newline] == [c.to_dict() for c in without]

    def test_overlap_repeats_lines(self):
        text = "a\nb\nc\nd"
        chunks = LineChunker(lines_per_chunk=3, overlap=1).chunk(text)

        assert [c.content for c in chunks] == ["a\nb\nc", "c\nd"]
        assert chunks[1].start_offset == 4
        for c in chunks:
            assert text[c.start_offset : c.end_offset] == c.content

    def test_overlap_larger_than_window_still_advances(self):
        chunks = LineChunker(lines_per_chunk=2, overlap=5).chunk("a\nb\nc")

        assert [c.metadata["start_line"] for c in chunks] == [0, 1, 2]


class TestSeparators:
    """Tests for paragraph and regex splitting."""

    def test_paragraphs(self):
        text = "First para.\n\nSecond para.\n\n\n  Third.  "
        chunks = decompose(text, "by_paragraphs")

        assert [c.content for c in chunks] == ["First para.", "Second para.", "Third."]
        assert [c.index for c in chunks] == [0, 1, 2]
        for c in chunks:
            assert text[c.start_offset : c.end_offset] == c.content

    def test_repeated_paragraphs_get_their_own_offsets(self):
        chunks = decompose("same\n\nsame\n\nsame", "by_paragraphs")

        assert [c.start_offset for c in chunks] == [0, 6, 12]

    def test_blank_paragraphs_are_dropped_without_index_gaps(self):
        chunks = decompose("\n\none\n\n   \n\ntwo\n\n", "by_paragraphs")

        assert [(c.index, c.content) for c in chunks] == [(0, "one"), (1, "two")]

    def test_custom_pattern(self):
        chunks = decompose("a---b---c", "by_regex", pattern="---")

        assert [(c.content, c.start_offset) for c in chunks] == [("a", 0), ("b", 4), ("c", 8)]

    def test_capturing_separator_does_not_become_a_chunk(self):
        chunks = RegexChunker(r"(;)").chunk("x;y")

        assert [c.content for c in chunks] == ["x", "y"]

    def test_default_pattern_is_blank_lines(self):
        assert [c.content for c in decompose("a\n\nb", "by_regex")] == ["a", "b"]

    def test_malformed_pattern_raises(self):
        with pytest.raises(InvalidPattern):
            decompose("text", "by_regex", pattern="(")


class TestSections:
    """Tests for Markdown section chunks."""

    def test_preamble_and_sections(self):
        text = "Intro\n# A\nbody a\n## B\nbody b"
        chunks = SectionChunker().chunk(text)

        assert [c.content for c in chunks] == ["Intro", "# A\nbody a", "## B\nbody b"]
        assert chunks[0].metadata == {"type": "preamble"}
        assert chunks[1].metadata == {"type": "section", "level": 1, "title": "A"}
        assert chunks[2].metadata == {"type": "section", "level": 2, "title": "B"}
        assert chunks[1].start_offset == 6
        assert chunks[2].end_offset == len(text)

    def test_no_headers_returns_whole_text(self):
        text = "plain text\n#hashtag is not a header"
        chunks = SectionChunker().chunk(text)

        assert len(chunks) == 1
        assert chunks[0].content == text
        assert chunks[0].metadata == {}

    def test_empty_text_is_one_empty_chunk(self):
        chunks = decompose("", "by_sections")

        assert len(chunks) == 1
        assert chunks[0].content == ""
        assert (chunks[0].start_offset, chunks[0].end_offset) == (0, 0)


class TestSentences:
    """Tests for sentence chunks."""

    def test_sentences(self):
        text = "Hello world. How are you? Fine!"
        chunks = decompose(text, "by_sentences")

        assert [c.content for c in chunks] == ["Hello world.", "How are you?", "Fine!"]
        for c in chunks:
            assert text[c.start_offset : c.end_offset].strip() == c.content

    def test_no_terminator_is_one_chunk(self):
        chunks = decompose("no stop here", "by_sentences")

        assert [c.content for c in chunks] == ["no stop here"]

    def test_trailing_fragment_kept(self):
        chunks = decompose("One. two", "by_sentences")

        assert [c.content for c in chunks] == ["One.", "two"]
        assert chunks[1].end_offset == 8


class TestDecompose:
    """Tests for strategy resolution and invariants shared by every strategy."""

    @pytest.mark.parametrize("strategy", list(DecompositionStrategy))
    def test_offsets_within_bounds_and_ordered(self, strategy):
        chunks = decompose(SAMPLE, strategy, chunk_size=50, overlap=10, lines_per_chunk=3)

        assert chunks
        assert [c.index for c in chunks] == list(range(len(chunks)))
        for c in chunks:
            assert 0 <= c.start_offset <= c.end_offset <= len(SAMPLE)
        starts = [c.start_offset for c in chunks]
        assert starts == sorted(starts)

    @pytest.mark.parametrize("strategy", list(DecompositionStrategy))
    def test_redecomposition_is_identical(self, strategy):
        first = decompose(SAMPLE, strategy)
        second = decompose(SAMPLE, strategy)

        assert [c.to_dict() for c in first] == [c.to_dict() for c in second]

    @pytest.mark.parametrize(
        "strategy",
        [s for s in DecompositionStrategy if s is not DecompositionStrategy.BY_SECTIONS],
    )
    def test_empty_text(self, strategy):
        assert decompose("", strategy) == []

    def test_unknown_strategy(self):
        with pytest.raises(InvalidParameter):
            resolve_strategy("by_magic")
        with pytest.raises(InvalidParameter):
            decompose("text", "by_magic")

    def test_overlap_defaults_per_strategy(self):
        assert get_chunker("fixed_size").overlap == 200
        assert get_chunker("by_lines").overlap == 10
        assert get_chunker("by_lines", overlap=0).overlap == 0

    def test_strategy_name_or_enum(self):
        assert resolve_strategy("by_lines") is DecompositionStrategy.BY_LINES
        assert resolve_strategy(DecompositionStrategy.BY_LINES) is DecompositionStrategy.BY_LINES

    def test_chunk_to_dict_merges_metadata(self):
        chunk = decompose("a\nb", "by_lines", lines_per_chunk=5)[0]

        data = chunk.to_dict(include_content=False)

        assert data == {"index": 0, "start_offset": 0, "end_offset": 3, "length": 3, "start_line": 0, "end_line": 1}

    @pytest.mark.parametrize("strategy", list(DecompositionStrategy))
    def test_every_chunker_fits_the_protocol(self, strategy):
        chunker = get_chunker(strategy)

        assert isinstance(chunker, ChunkingStrategy)
        assert chunker.strategy is strategy

    @pytest.mark.parametrize("strategy", list(DecompositionStrategy))
    @pytest.mark.parametrize("text", [SAMPLE, "plain line one.\nline two", "# Only\nbody"])
    def test_trailing_newline_is_tolerated(self, strategy, text):
        bare = decompose(text, strategy)
        terminated = decompose(text + "\n", strategy)

        assert [c.content.rstrip("\n") for c in terminated] == [c.content for c in bare]
        for chunks, source in ((bare, text), (terminated, text + "\n")):
            for c in chunks:
                assert 0 <= c.start_offset <= c.end_offset <= len(source)
