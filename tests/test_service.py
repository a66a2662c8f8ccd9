"""Tests for the tool operations."""

import pytest

from ctxpack.errors import (
    ContextNotFound,
    InvalidParameter,
    InvalidPattern,
    SessionNotFound,
    VariableNotFound,
)

TEXT = "line one\nline two\nthird line here\n\nA second paragraph."


@pytest.fixture
def loaded(service):
    service.load_context(TEXT)
    return service


class TestContexts:
    """Tests for loading and reading contexts."""

    def test_load_uses_default_session(self, service):
        result = service.load_context("hello world")

        assert result["success"] is True
        assert result["context_id"] == "main"
        assert result["session_id"] == "default"
        assert result["metadata"]["word_count"] == 2

    def test_reload_replaces(self, service):
        service.load_context("first")
        service.load_context("second, longer")

        assert service.read_context()["content"] == "second, longer"

    def test_unknown_context(self, service):
        with pytest.raises(ContextNotFound):
            service.get_context_info("missing")

    def test_info_preview(self, service):
        service.load_context("x" * 150)

        short = service.get_context_info(preview_length=100)
        full = service.get_context_info(preview_length=200)
        bare = service.get_context_info(include_preview=False)

        assert short["preview"] == "x" * 100
        assert short["preview_truncated"] is True
        assert "preview_truncated" not in full
        assert "preview" not in bare

    def test_preview_length_bounds(self, loaded):
        with pytest.raises(InvalidParameter):
            loaded.get_context_info(preview_length=99)

    def test_read_chars(self, loaded):
        result = loaded.read_context(start=5, end=8)

        assert result == {"content": "one", "start": 5, "end": 8, "mode": "chars", "length": 3}

    def test_read_lines(self, loaded):
        result = loaded.read_context(start=1, end=3, mode="lines")

        assert result["content"] == "line two\nthird line here"

    def test_read_clamps_and_defaults_to_end(self, loaded):
        assert loaded.read_context(start=50)["content"] == TEXT[50:]
        assert loaded.read_context(start=0, end=10_000)["end"] == len(TEXT)
        assert loaded.read_context(start=10_000)["content"] == ""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start": -1},
            {"start": 5, "end": 2},
            {"mode": "words"},
        ],
    )
    def test_read_rejects(self, loaded, kwargs):
        with pytest.raises(InvalidParameter):
            loaded.read_context(**kwargs)

    def test_invalid_context_id(self, service):
        with pytest.raises(InvalidParameter):
            service.load_context("text", context_id="")
        with pytest.raises(InvalidParameter):
            service.load_context("text", context_id="x" * 101)


class TestDecomposition:
    """Tests for decompose_context and get_chunks."""

    def test_metadata_only_by_default(self, loaded):
        result = loaded.decompose_context(strategy="by_lines", lines_per_chunk=2, overlap=0)

        assert result["strategy"] == "by_lines"
        assert result["total_chunks"] == 3
        assert "content" not in result["chunks"][0]

    def test_with_content(self, loaded):
        result = loaded.decompose_context(strategy="by_paragraphs", return_content=True)

        assert [c["content"] for c in result["chunks"]] == [
            "line one\nline two\nthird line here",
            "A second paragraph.",
        ]

    def test_large_listing_is_summarized(self, service):
        service.load_context("y" * 5000)

        result = service.decompose_context(chunk_size=1, overlap=0)

        assert result["truncated"] is True
        assert result["total_chunks"] == 5000
        assert len(result["chunks"]) == 10
        assert result["message"] == (
            "Showing first 10 of 5000 chunks. Use rlm_get_chunks to retrieve specific chunks."
        )

    def test_parameter_bounds(self, loaded):
        with pytest.raises(InvalidParameter):
            loaded.decompose_context(chunk_size=0)
        with pytest.raises(InvalidParameter):
            loaded.decompose_context(strategy="by_lines", lines_per_chunk=0)
        with pytest.raises(InvalidParameter):
            loaded.decompose_context(strategy="nonsense")

    def test_bad_split_pattern(self, loaded):
        with pytest.raises(InvalidPattern):
            loaded.decompose_context(strategy="by_regex", pattern="(")

    def test_get_chunks_skips_out_of_range(self, loaded):
        result = loaded.get_chunks([0, 99, -1], strategy="by_paragraphs")

        assert result["requested"] == 3
        assert result["returned"] == 1
        assert result["chunks"][0]["content"].startswith("line one")

    def test_get_chunks_matches_decompose(self, loaded):
        listing = loaded.decompose_context(strategy="by_lines", lines_per_chunk=2, return_content=True)
        picked = loaded.get_chunks([1], strategy="by_lines", lines_per_chunk=2)

        assert picked["chunks"][0] == listing["chunks"][1]

    @pytest.mark.parametrize("indices", [[], list(range(51)), ["0"]])
    def test_get_chunks_rejects(self, loaded, indices):
        with pytest.raises(InvalidParameter):
            loaded.get_chunks(indices)


class TestSearch:
    """Tests for search_context and find_all."""

    def test_search(self, loaded):
        result = loaded.search_context("LINE", context_chars=0)

        assert result["total_matches"] == 3
        assert [m["line_number"] for m in result["matches"]] == [1, 2, 3]

    def test_search_bounds(self, loaded):
        with pytest.raises(InvalidParameter):
            loaded.search_context("x", max_results=501)
        with pytest.raises(InvalidParameter):
            loaded.search_context("")

    def test_find_all(self, loaded):
        result = loaded.find_all("line")

        assert result["count"] == 3
        assert result["offsets"] == [0, 9, 24]


class TestState:
    """Tests for variables, the answer and scripts."""

    def test_variables(self, service):
        service.set_variable("found", [1, 2])

        assert service.get_variable("found") == {"name": "found", "value": [1, 2]}
        with pytest.raises(VariableNotFound):
            service.get_variable("other")

    def test_answer(self, service):
        assert service.get_answer() == {"content": "", "ready": False}

        result = service.set_answer("draft")

        assert result == {"success": True, "ready": False, "content_length": 5}
        service.set_answer("final", ready=True)
        assert service.get_answer() == {"content": "final", "ready": True}

    def test_execute_code(self, loaded):
        result = loaded.execute_code("n = len(lines(get_context()))\nset_var('n', n)\nprint(n)")

        assert result["success"] is True
        assert result["output"] == "5\n"
        assert loaded.get_variable("n")["value"] == 5

    def test_execute_code_failure_is_a_result(self, service):
        result = service.execute_code("1 / 0")

        assert result["success"] is False
        assert result["error"].startswith("ExecutionRuntimeError: ZeroDivisionError")

    def test_empty_code(self, service):
        with pytest.raises(InvalidParameter):
            service.execute_code("")


class TestSessions:
    """Tests for session operations."""

    def test_sessions_are_isolated(self, service):
        session_id = service.create_session()["session_id"]
        service.load_context("private", session_id=session_id)

        with pytest.raises(ContextNotFound):
            service.read_context()
        assert service.read_context(session_id=session_id)["content"] == "private"

    def test_unknown_session(self, service):
        with pytest.raises(SessionNotFound):
            service.load_context("text", session_id="nobody")

    def test_info_and_clear(self, service):
        service.load_context("text")
        service.set_variable("v", 1)

        info = service.get_session_info()
        assert info["session_id"] == "default"
        assert info["variables"] == ["v"]

        service.clear_session()

        assert service.get_session_info()["contexts"] == []


class TestAnalysis:
    """Tests for suggest_strategy and get_statistics."""

    def test_suggest_for_csv(self, service):
        service.load_context("a,b\n1,2\n3,4\n", context_id="table")

        result = service.suggest_strategy("table")

        assert result["structure"] == "csv"
        assert result["strategy"] == "by_lines"

    def test_statistics(self, loaded):
        result = loaded.get_statistics()

        assert result["context_id"] == "main"
        assert result["paragraph_count"] == 2
        assert result["line_count"] == 5


class TestLoadDirectory:
    """Tests for documentation folders."""

    def test_load_directory(self, service, docs_dir):
        result = service.load_directory(str(docs_dir))

        assert result["success"] is True
        assert result["context_id"] == "docs"
        assert result["file_count"] == 4
        assert result["strategy"] == "by_sections"
        assert result["total_chunks"] > 0

        content = service.read_context("docs")["content"]
        for entry in result["table_of_contents"]:
            assert content[entry["offset"] :].startswith(f"--- FILE: {entry['path']} ---")

    def test_explicit_strategy(self, service, docs_dir):
        result = service.load_directory(str(docs_dir), context_id="kb", strategy="by_paragraphs")

        assert result["strategy"] == "by_paragraphs"
        assert service.get_context_info("kb", include_preview=False)["context_id"] == "kb"

    def test_bad_path(self, service, tmp_path):
        with pytest.raises(InvalidParameter):
            service.load_directory(str(tmp_path / "nope"))
