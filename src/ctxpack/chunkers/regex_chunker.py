"""Separator-based chunking on a caller-supplied pattern."""

from typing import Iterator

from ctxpack.config import DEFAULT_SPLIT_PATTERN, REGEX_TIMEOUT
from ctxpack.models import Chunk, DecompositionStrategy
from ctxpack.utils.patterns import compile_pattern, iter_matches


class RegexChunker:
    """Split text wherever ``pattern`` matches.

    Pieces are trimmed and blank pieces dropped. Spans are tracked while
    splitting, so each chunk's offsets address exactly its trimmed content,
    even when the same text occurs several times. Capturing groups in the
    separator do not produce chunks of their own.
    """

    strategy = DecompositionStrategy.BY_REGEX

    def __init__(self, pattern: str = DEFAULT_SPLIT_PATTERN, timeout: float = REGEX_TIMEOUT):
        self.pattern = pattern
        self.timeout = timeout
        self._regex = compile_pattern(pattern)

    def chunk(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []

        for start, end in self._pieces(text):
            piece = text[start:end]
            stripped = piece.strip()
            if not stripped:
                continue
            content_start = start + (len(piece) - len(piece.lstrip()))
            chunks.append(
                Chunk(
                    index=len(chunks),
                    content=stripped,
                    start_offset=content_start,
                    end_offset=content_start + len(stripped),
                )
            )

        return chunks

    def _pieces(self, text: str) -> Iterator[tuple[int, int]]:
        """Yield the (start, end) spans between separator matches."""
        position = 0
        for match in iter_matches(self._regex, text, self.timeout):
            yield position, match.start()
            position = match.end()
        yield position, len(text)
