"""Tool operations, independent of any transport.

Each public method of ``ContextService`` is one tool: it validates its
arguments, resolves the session, holds the session lock for the whole
operation and returns a JSON-ready dict. Failures are raised as
``ContextPackError`` subclasses; turning them into tool results is the
transport's job.
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Union

from ctxpack import analysis
from ctxpack.chunkers import decompose, resolve_strategy
from ctxpack.config import (
    CHARACTER_LIMIT,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONTEXT_CHARS,
    DEFAULT_CONTEXT_ID,
    DEFAULT_LINES_PER_CHUNK,
    DEFAULT_PREVIEW_LENGTH,
    DEFAULT_SEARCH_RESULTS,
    MAX_CHUNK_REQUEST,
    MAX_CHUNK_SIZE,
    MAX_CONTEXT_CHARS,
    MAX_CONTEXT_PREVIEW,
    MAX_ID_LENGTH,
    MAX_LINES_PER_CHUNK,
    MAX_OVERLAP,
    MAX_SEARCH_RESULTS,
    TRUNCATED_CHUNK_PREVIEW,
    EngineConfig,
)
from ctxpack.errors import InvalidParameter
from ctxpack.ingesters import detect_strategy, load_documents
from ctxpack.models import Chunk, Context, DecompositionStrategy
from ctxpack.sandbox import ScriptSandbox
from ctxpack.sessions import Session, SessionRegistry

logger = logging.getLogger(__name__)

Strategy = Union[str, DecompositionStrategy]

PREVIEW_RANGE = (100, MAX_CONTEXT_PREVIEW)
DOCS_CONTEXT_ID = "docs"


def _check_range(name: str, value: int, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise InvalidParameter(f"{name} must be between {low} and {high}, got {value}")
    return value


def _check_id(name: str, value: str) -> str:
    if not isinstance(value, str) or not 1 <= len(value) <= MAX_ID_LENGTH:
        raise InvalidParameter(f"{name} must be a string of 1-{MAX_ID_LENGTH} characters")
    return value


def _check_text(name: str, value: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidParameter(f"{name} must be a non-empty string")
    return value


class ContextService:
    """The context engine's public operations.

    Args:
        registry: Session registry; built from ``config`` if omitted
        sandbox: Script sandbox; built from ``config`` if omitted
        config: Engine settings; taken from ``registry`` if omitted
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry] = None,
        sandbox: Optional[ScriptSandbox] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or (registry.config if registry else EngineConfig())
        self.registry = registry or SessionRegistry(self.config)
        self.sandbox = sandbox or ScriptSandbox(
            timeout=self.config.execution_timeout,
            max_output=self.config.max_output_chars,
        )

    @contextmanager
    def _session(self, session_id: Optional[str]) -> Iterator[Session]:
        if session_id is not None:
            _check_id("session_id", session_id)
        session = self.registry.resolve(session_id)
        with session.lock:
            yield session

    def _chunks(
        self,
        context: Context,
        strategy: Strategy,
        chunk_size: int,
        overlap: Optional[int],
        lines_per_chunk: int,
        pattern: Optional[str],
    ) -> list[Chunk]:
        _check_range("chunk_size", chunk_size, 1, MAX_CHUNK_SIZE)
        if overlap is not None:
            _check_range("overlap", overlap, 0, MAX_OVERLAP)
        _check_range("lines_per_chunk", lines_per_chunk, 1, MAX_LINES_PER_CHUNK)
        if pattern is not None:
            _check_text("pattern", pattern)
        return decompose(
            context.content,
            strategy,
            chunk_size=chunk_size,
            overlap=overlap,
            lines_per_chunk=lines_per_chunk,
            pattern=pattern,
            regex_timeout=self.config.regex_timeout,
        )

    # Contexts

    def load_context(
        self,
        context: str,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
    ) -> dict[str, Any]:
        if not isinstance(context, str):
            raise InvalidParameter("context must be a string")
        _check_id("context_id", context_id)
        with self._session(session_id) as session:
            loaded = session.load_context(context_id, context)
            return {
                "success": True,
                "context_id": context_id,
                "session_id": session.id,
                "metadata": loaded.metadata.to_dict(),
            }

    def get_context_info(
        self,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        include_preview: bool = True,
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
    ) -> dict[str, Any]:
        _check_range("preview_length", preview_length, *PREVIEW_RANGE)
        with self._session(session_id) as session:
            context = session.get_context(context_id)
            result: dict[str, Any] = {
                "context_id": context_id,
                "metadata": context.metadata.to_dict(),
                "created_at": context.created_at.isoformat(),
            }
            if include_preview:
                result["preview"] = context.content[:preview_length]
                if len(context.content) > preview_length:
                    result["preview_truncated"] = True
            return result

    def read_context(
        self,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        start: int = 0,
        end: Optional[int] = None,
        mode: str = "chars",
    ) -> dict[str, Any]:
        """Read ``[start, end)`` in characters or lines; no ``end`` reads to the end."""
        if mode not in ("chars", "lines"):
            raise InvalidParameter(f"mode must be 'chars' or 'lines', got {mode!r}")
        if isinstance(start, bool) or not isinstance(start, int) or start < 0:
            raise InvalidParameter(f"start must be a non-negative integer, got {start!r}")
        if end is not None and (isinstance(end, bool) or not isinstance(end, int) or end < start):
            raise InvalidParameter(f"end must be an integer no smaller than start, got {end!r}")

        with self._session(session_id) as session:
            text = session.get_context(context_id).content
            if mode == "lines":
                lines = text.split("\n")
                stop = len(lines) if end is None else min(end, len(lines))
                content = "\n".join(lines[start:stop])
            else:
                stop = len(text) if end is None else min(end, len(text))
                content = text[start:stop]
            return {
                "content": content,
                "start": start,
                "end": max(stop, start),
                "mode": mode,
                "length": len(content),
            }

    # Decomposition

    def decompose_context(
        self,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        strategy: Strategy = DecompositionStrategy.FIXED_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: Optional[int] = None,
        lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
        pattern: Optional[str] = None,
        return_content: bool = False,
    ) -> dict[str, Any]:
        """Chunk a context; oversized listings fall back to a summary of the first chunks."""
        resolved = resolve_strategy(strategy)
        with self._session(session_id) as session:
            context = session.get_context(context_id)
            chunks = self._chunks(context, resolved, chunk_size, overlap, lines_per_chunk, pattern)

        result: dict[str, Any] = {
            "total_chunks": len(chunks),
            "strategy": resolved.value,
            "chunks": [c.to_dict(include_content=return_content) for c in chunks],
        }
        if len(json.dumps(result, indent=2)) > CHARACTER_LIMIT:
            preview = TRUNCATED_CHUNK_PREVIEW
            result["chunks"] = [
                {
                    "index": c.index,
                    "start_offset": c.start_offset,
                    "end_offset": c.end_offset,
                    "length": c.length,
                }
                for c in chunks[:preview]
            ]
            result["truncated"] = True
            result["message"] = (
                f"Showing first {preview} of {len(chunks)} chunks. "
                "Use rlm_get_chunks to retrieve specific chunks."
            )
        return result

    def get_chunks(
        self,
        chunk_indices: Sequence[int],
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        strategy: Strategy = DecompositionStrategy.FIXED_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: Optional[int] = None,
        lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
        pattern: Optional[str] = None,
    ) -> dict[str, Any]:
        """Re-run a decomposition and return the requested chunks.

        Indices outside the decomposition (negative ones included) are left
        out, so ``returned`` can be smaller than ``requested``.
        """
        indices = list(chunk_indices)
        if not 1 <= len(indices) <= MAX_CHUNK_REQUEST:
            raise InvalidParameter(f"chunk_indices must hold 1-{MAX_CHUNK_REQUEST} indices")
        if any(isinstance(i, bool) or not isinstance(i, int) for i in indices):
            raise InvalidParameter("chunk_indices must be integers")

        resolved = resolve_strategy(strategy)
        with self._session(session_id) as session:
            context = session.get_context(context_id)
            chunks = self._chunks(context, resolved, chunk_size, overlap, lines_per_chunk, pattern)

        selected = [chunks[i] for i in indices if 0 <= i < len(chunks)]
        return {
            "requested": len(indices),
            "returned": len(selected),
            "chunks": [c.to_dict() for c in selected],
        }

    # Search

    def search_context(
        self,
        pattern: str,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        flags: str = "gi",
        context_chars: int = DEFAULT_CONTEXT_CHARS,
        max_results: int = DEFAULT_SEARCH_RESULTS,
        include_line_numbers: bool = True,
    ) -> dict[str, Any]:
        _check_text("pattern", pattern)
        _check_range("context_chars", context_chars, 0, MAX_CONTEXT_CHARS)
        _check_range("max_results", max_results, 1, MAX_SEARCH_RESULTS)
        with self._session(session_id) as session:
            text = session.get_context(context_id).content
            matches = analysis.search(
                text,
                pattern,
                flags=flags,
                context_chars=context_chars,
                max_results=max_results,
                include_line_numbers=include_line_numbers,
                timeout=self.config.regex_timeout,
            )
        return {
            "pattern": pattern,
            "total_matches": len(matches),
            "matches": [m.to_dict() for m in matches],
        }

    def find_all(
        self,
        substring: str,
        context_id: str = DEFAULT_CONTEXT_ID,
        session_id: Optional[str] = None,
        case_sensitive: bool = False,
    ) -> dict[str, Any]:
        _check_text("substring", substring)
        with self._session(session_id) as session:
            text = session.get_context(context_id).content
            offsets = analysis.find_all(text, substring, case_sensitive=case_sensitive)
        return {
            "substring": substring,
            "case_sensitive": case_sensitive,
            "count": len(offsets),
            "offsets": offsets,
        }

    # Scripts, variables and the answer

    def execute_code(self, code: str, session_id: Optional[str] = None) -> dict[str, Any]:
        _check_text("code", code)
        with self._session(session_id) as session:
            return self.sandbox.execute(session, code).to_dict()

    def set_variable(self, name: str, value: Any, session_id: Optional[str] = None) -> dict[str, Any]:
        _check_id("name", name)
        with self._session(session_id) as session:
            session.set_variable(name, value)
        return {"success": True, "name": name}

    def get_variable(self, name: str, session_id: Optional[str] = None) -> dict[str, Any]:
        _check_id("name", name)
        with self._session(session_id) as session:
            return {"name": name, "value": session.get_variable(name)}

    def set_answer(self, content: str, ready: bool = False, session_id: Optional[str] = None) -> dict[str, Any]:
        if not isinstance(content, str):
            raise InvalidParameter("content must be a string")
        with self._session(session_id) as session:
            answer = session.set_answer(content, ready)
        return {"success": True, "ready": answer.ready, "content_length": len(answer.content)}

    def get_answer(self, session_id: Optional[str] = None) -> dict[str, Any]:
        with self._session(session_id) as session:
            return session.answer.to_dict()

    # Sessions

    def create_session(self) -> dict[str, Any]:
        session = self.registry.create_session()
        return {"session_id": session.id, "created_at": session.created_at.isoformat()}

    def get_session_info(self, session_id: Optional[str] = None) -> dict[str, Any]:
        with self._session(session_id) as session:
            return session.info()

    def clear_session(self, session_id: Optional[str] = None) -> dict[str, Any]:
        with self._session(session_id) as session:
            session.clear()
            return {"success": True, "session_id": session.id}

    # Analysis

    def suggest_strategy(self, context_id: str = DEFAULT_CONTEXT_ID, session_id: Optional[str] = None) -> dict[str, Any]:
        with self._session(session_id) as session:
            context = session.get_context(context_id)
        suggestion = analysis.suggest_strategy(context.content, context.metadata.structure)
        return {
            "context_id": context_id,
            "structure": context.metadata.structure.value,
            **suggestion.to_dict(),
        }

    def get_statistics(self, context_id: str = DEFAULT_CONTEXT_ID, session_id: Optional[str] = None) -> dict[str, Any]:
        with self._session(session_id) as session:
            context = session.get_context(context_id)
        return {"context_id": context_id, **analysis.get_statistics(context.content).to_dict()}

    # Documentation folders

    def load_directory(
        self,
        path: str,
        context_id: str = DOCS_CONTEXT_ID,
        session_id: Optional[str] = None,
        strategy: Optional[Strategy] = None,
    ) -> dict[str, Any]:
        """Aggregate a folder or zip of documentation into one context and decompose it."""
        _check_text("path", path)
        _check_id("context_id", context_id)
        resolved = resolve_strategy(strategy) if strategy is not None else None

        documents = load_documents(Path(path))
        resolved = resolved or detect_strategy(documents.entries)

        with self._session(session_id) as session:
            context = session.load_context(context_id, documents.content)
            chunks = decompose(
                context.content,
                resolved,
                regex_timeout=self.config.regex_timeout,
            )
            logger.info(
                f"Session {session.id}: loaded {documents.file_count} files from {path} "
                f"as '{context_id}' ({len(chunks)} {resolved.value} chunks)"
            )
            return {
                "success": True,
                "context_id": context_id,
                "session_id": session.id,
                "file_count": documents.file_count,
                "total_size": documents.total_size,
                "strategy": resolved.value,
                "total_chunks": len(chunks),
                "table_of_contents": [entry.to_dict() for entry in documents.entries],
            }
