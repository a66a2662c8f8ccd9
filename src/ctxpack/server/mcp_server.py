"""FastMCP server implementation for ctxpack."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from mcp.server.fastmcp import FastMCP

from ctxpack.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONTEXT_CHARS,
    DEFAULT_CONTEXT_ID,
    DEFAULT_LINES_PER_CHUNK,
    DEFAULT_PREVIEW_LENGTH,
    DEFAULT_SEARCH_RESULTS,
    SERVER_NAME,
)
from ctxpack.errors import ContextPackError
from ctxpack.server.service import DOCS_CONTEXT_ID, ContextService

logger = logging.getLogger(__name__)


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _call(operation: Callable[..., dict[str, Any]], *args: Any, **kwargs: Any) -> str:
    """Run a service operation and render its result or failure as JSON text."""
    try:
        return _dump(operation(*args, **kwargs))
    except ContextPackError as e:
        return _dump({"success": False, "error": e.to_dict()})
    except Exception as e:
        logger.exception(f"Tool {operation.__name__} failed")
        return _dump(
            {
                "success": False,
                "error": {"code": "internal_error", "type": type(e).__name__, "message": str(e)},
            }
        )


async def _run(operation: Callable[..., dict[str, Any]], *args: Any, **kwargs: Any) -> str:
    """Run an operation off the event loop.

    Operations block on their session's lock (held for a whole script run),
    so they must never run on the loop thread itself.
    """
    return await asyncio.to_thread(_call, operation, *args, **kwargs)


def create_mcp_server(service: Optional[ContextService] = None) -> FastMCP:
    """Create an MCP server exposing the context engine as ``rlm_*`` tools.

    The session registry's inactivity sweep runs for as long as the server
    does; every session is evicted when it stops.

    Args:
        service: The engine to serve (a default one is built if omitted)

    Returns:
        Configured FastMCP server instance
    """
    service = service or ContextService()

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        service.registry.start()
        logger.info(f"{SERVER_NAME} server started")
        try:
            yield
        finally:
            service.registry.shutdown()
            logger.info(f"{SERVER_NAME} server stopped")

    mcp = FastMCP(name=SERVER_NAME, lifespan=lifespan)

    # Context management

    @mcp.tool()
    async def rlm_load_context(
        context: str,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
    ) -> str:
        """Load a large text into session memory for later processing.

        The text is kept outside the conversation and can be inspected,
        searched and decomposed with the other rlm_ tools.

        Args:
            context: The text to load (document, log, dataset...)
            context_id: Name to store it under (default: "main")
            session_id: Session to use (default session if omitted)

        Returns:
            JSON with the context's length, line/word counts and detected structure
        """
        return await _run(service.load_context, context, context_id=context_id, session_id=session_id)

    @mcp.tool()
    async def rlm_get_context_info(
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        include_preview: bool = True,
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
    ) -> str:
        """Get metadata about a loaded context, with an optional preview.

        Args:
            context_id: Context to describe
            session_id: Session to use (default session if omitted)
            include_preview: Include the first characters of the context
            preview_length: Preview size in characters (100-10000)
        """
        return await _run(
            service.get_context_info,
            context_id=context_id,
            session_id=session_id,
            include_preview=include_preview,
            preview_length=preview_length,
        )

    @mcp.tool()
    async def rlm_read_context(
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        start: int = 0,
        end: Optional[int] = None,
        mode: str = "chars",
    ) -> str:
        """Read part of a context by character offsets or line numbers.

        Args:
            context_id: Context to read
            session_id: Session to use (default session if omitted)
            start: First character or line (0-based)
            end: Exclusive end; omit to read to the end
            mode: "chars" or "lines"
        """
        return await _run(
            service.read_context,
            context_id=context_id,
            session_id=session_id,
            start=start,
            end=end,
            mode=mode,
        )

    # Decomposition

    @mcp.tool()
    async def rlm_decompose_context(
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        strategy: str = "fixed_size",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: Optional[int] = None,
        lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
        pattern: Optional[str] = None,
        return_content: bool = False,
    ) -> str:
        """Split a context into chunks.

        Strategies: fixed_size, by_lines, by_paragraphs, by_sections
        (Markdown headers), by_regex (split on ``pattern``), by_sentences.
        Returns chunk offsets; use rlm_get_chunks to fetch content.

        Args:
            context_id: Context to split
            session_id: Session to use (default session if omitted)
            strategy: Decomposition strategy
            chunk_size: Characters per chunk for fixed_size
            overlap: Overlap in characters (fixed_size) or lines (by_lines)
            lines_per_chunk: Lines per chunk for by_lines
            pattern: Split pattern for by_regex
            return_content: Include chunk text in the result
        """
        return await _run(
            service.decompose_context,
            context_id=context_id,
            session_id=session_id,
            strategy=strategy,
            chunk_size=chunk_size,
            overlap=overlap,
            lines_per_chunk=lines_per_chunk,
            pattern=pattern,
            return_content=return_content,
        )

    @mcp.tool()
    async def rlm_get_chunks(
        chunk_indices: list[int],
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        strategy: str = "fixed_size",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: Optional[int] = None,
        lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
        pattern: Optional[str] = None,
    ) -> str:
        """Fetch the content of specific chunks (up to 50 at once).

        Pass the same strategy options used with rlm_decompose_context.
        Indices outside the decomposition are skipped.
        """
        return await _run(
            service.get_chunks,
            chunk_indices,
            context_id=context_id,
            session_id=session_id,
            strategy=strategy,
            chunk_size=chunk_size,
            overlap=overlap,
            lines_per_chunk=lines_per_chunk,
            pattern=pattern,
        )

    # Search

    @mcp.tool()
    async def rlm_search_context(
        pattern: str,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        flags: str = "gi",
        context_chars: int = DEFAULT_CONTEXT_CHARS,
        max_results: int = DEFAULT_SEARCH_RESULTS,
        include_line_numbers: bool = True,
    ) -> str:
        """Search a context with a regular expression.

        Examples: "error|warning", "def\\s+\\w+", "TODO|FIXME".

        Args:
            pattern: Regular expression
            context_id: Context to search
            session_id: Session to use (default session if omitted)
            flags: Flag letters: i (ignore case), m (multiline), s (dot-all), x (verbose)
            context_chars: Characters of surrounding text per match (0-1000)
            max_results: Maximum matches to return (1-500)
            include_line_numbers: Report 1-based line numbers
        """
        return await _run(
            service.search_context,
            pattern,
            context_id=context_id,
            session_id=session_id,
            flags=flags,
            context_chars=context_chars,
            max_results=max_results,
            include_line_numbers=include_line_numbers,
        )

    @mcp.tool()
    async def rlm_find_all(
        substring: str,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        case_sensitive: bool = False,
    ) -> str:
        """Find every offset of a plain substring (faster than regex)."""
        return await _run(
            service.find_all,
            substring,
            context_id=context_id,
            session_id=session_id,
            case_sensitive=case_sensitive,
        )

    # Code execution

    @mcp.tool()
    async def rlm_execute_code(code: str, session_id: Optional[str] = None) -> str:
        """Run a Python script against the session.

        Available inside the script: print, get_context(id),
        get_context_metadata(id), list_contexts(), set_var(name, value),
        get_var(name, default), list_vars(), set_answer(content, ready),
        get_answer(), split, join, lines, trim, lower, upper,
        search(pattern, text, flags), find_all(pattern, text, flags),
        replace(text, pattern, repl), reduce, unique, chunked, sort_copy and
        common builtins. ``import`` is limited to math, statistics, json, re,
        collections, itertools, functools, textwrap, datetime and
        random. Scripts are stopped after the execution timeout.

        Args:
            code: Python source to run
            session_id: Session to use (default session if omitted)
        """
        return await _run(service.execute_code, code, session_id=session_id)

    @mcp.tool()
    async def rlm_set_variable(name: str, value: Any, session_id: Optional[str] = None) -> str:
        """Store a JSON value in the session for later use."""
        return await _run(service.set_variable, name, value, session_id=session_id)

    @mcp.tool()
    async def rlm_get_variable(name: str, session_id: Optional[str] = None) -> str:
        """Retrieve a variable stored in the session."""
        return await _run(service.get_variable, name, session_id=session_id)

    # Answer

    @mcp.tool()
    async def rlm_set_answer(content: str, ready: bool = False, session_id: Optional[str] = None) -> str:
        """Set or update the answer being built up for the current task.

        Args:
            content: Answer text (replaces the previous one)
            ready: Mark the answer as complete
            session_id: Session to use (default session if omitted)
        """
        return await _run(service.set_answer, content, ready=ready, session_id=session_id)

    @mcp.tool()
    async def rlm_get_answer(session_id: Optional[str] = None) -> str:
        """Get the current answer and whether it is marked ready."""
        return await _run(service.get_answer, session_id=session_id)

    # Sessions

    @mcp.tool()
    async def rlm_create_session() -> str:
        """Create a new isolated session and return its id."""
        return await _run(service.create_session)

    @mcp.tool()
    async def rlm_get_session_info(session_id: Optional[str] = None) -> str:
        """Describe a session: contexts, variables, executions and answer state."""
        return await _run(service.get_session_info, session_id=session_id)

    @mcp.tool()
    async def rlm_clear_session(session_id: Optional[str] = None) -> str:
        """Remove all contexts, variables, history and the answer from a session."""
        return await _run(service.clear_session, session_id=session_id)

    # Analysis

    @mcp.tool()
    async def rlm_suggest_strategy(context_id: str = DEFAULT_CONTEXT_ID, session_id: Optional[str] = None) -> str:
        """Recommend a decomposition strategy from the context's structure and size."""
        return await _run(service.suggest_strategy, context_id=context_id, session_id=session_id)

    @mcp.tool()
    async def rlm_get_statistics(context_id: str = DEFAULT_CONTEXT_ID, session_id: Optional[str] = None) -> str:
        """Length, line/word/sentence/paragraph counts and averages for a context."""
        return await _run(service.get_statistics, context_id=context_id, session_id=session_id)

    # Documentation

    @mcp.tool()
    async def rlm_load_directory(
        path: str,
        context_id: str = DOCS_CONTEXT_ID,
        session_id: Optional[str] = None,
        strategy: Optional[str] = None,
    ) -> str:
        """Load a local folder or .zip of documentation as one context.

        Markdown, text, reStructuredText, AsciiDoc and HTML files are joined
        in path order under "--- FILE: <path> ---" headers, then decomposed.

        Args:
            path: Folder or .zip archive on the server's file system
            context_id: Context to store the aggregate under (default: "docs")
            session_id: Session to use (default session if omitted)
            strategy: Decomposition strategy (picked from the files if omitted)

        Returns:
            JSON with file count, chunk count and a table of contents
        """
        return await _run(
            service.load_directory,
            path,
            context_id=context_id,
            session_id=session_id,
            strategy=strategy,
        )

    return mcp
