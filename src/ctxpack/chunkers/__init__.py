"""Decomposition strategies.

``decompose`` is the single entry point: it resolves a strategy name to a
chunker and runs it. Decomposition is pure, so re-running it with the same
text and options reproduces the same chunk indices.
"""

from typing import Optional, Union

from ctxpack.chunkers.fixed_size import FixedSizeChunker
from ctxpack.chunkers.line_chunker import LineChunker
from ctxpack.chunkers.paragraph_chunker import ParagraphChunker
from ctxpack.chunkers.regex_chunker import RegexChunker
from ctxpack.chunkers.section_chunker import SectionChunker
from ctxpack.chunkers.sentence_chunker import SentenceChunker
from ctxpack.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LINE_OVERLAP,
    DEFAULT_LINES_PER_CHUNK,
    DEFAULT_OVERLAP,
    DEFAULT_SPLIT_PATTERN,
    REGEX_TIMEOUT,
)
from ctxpack.errors import InvalidParameter
from ctxpack.models import Chunk, DecompositionStrategy
from ctxpack.protocols import ChunkingStrategy


def resolve_strategy(strategy: Union[str, DecompositionStrategy]) -> DecompositionStrategy:
    """Map a strategy name onto the enum, rejecting unknown names."""
    try:
        return DecompositionStrategy(strategy)
    except ValueError:
        known = ", ".join(s.value for s in DecompositionStrategy)
        raise InvalidParameter(f"Unknown strategy '{strategy}'. Expected one of: {known}") from None


def get_chunker(
    strategy: Union[str, DecompositionStrategy],
    *,
    chunk_size: Optional[int] = None,
    overlap: Optional[int] = None,
    lines_per_chunk: Optional[int] = None,
    pattern: Optional[str] = None,
    regex_timeout: float = REGEX_TIMEOUT,
) -> ChunkingStrategy:
    """Build the chunker for a strategy.

    Options a strategy does not use are ignored; ``None`` means the
    strategy's own default (overlap defaults differ between character and
    line chunking).
    """
    resolved = resolve_strategy(strategy)

    if resolved is DecompositionStrategy.FIXED_SIZE:
        return FixedSizeChunker(
            chunk_size=DEFAULT_CHUNK_SIZE if chunk_size is None else chunk_size,
            overlap=DEFAULT_OVERLAP if overlap is None else overlap,
        )
    if resolved is DecompositionStrategy.BY_LINES:
        return LineChunker(
            lines_per_chunk=DEFAULT_LINES_PER_CHUNK if lines_per_chunk is None else lines_per_chunk,
            overlap=DEFAULT_LINE_OVERLAP if overlap is None else overlap,
        )
    if resolved is DecompositionStrategy.BY_PARAGRAPHS:
        return ParagraphChunker(timeout=regex_timeout)
    if resolved is DecompositionStrategy.BY_SECTIONS:
        return SectionChunker()
    if resolved is DecompositionStrategy.BY_REGEX:
        return RegexChunker(pattern or DEFAULT_SPLIT_PATTERN, timeout=regex_timeout)
    return SentenceChunker()


def decompose(
    text: str,
    strategy: Union[str, DecompositionStrategy] = DecompositionStrategy.FIXED_SIZE,
    **options,
) -> list[Chunk]:
    """Split ``text`` into an ordered list of chunks.

    Args:
        text: The source text
        strategy: Strategy name or enum member
        **options: chunk_size, overlap, lines_per_chunk, pattern, regex_timeout

    Returns:
        Chunks with contiguous indices from 0 and exact source offsets
    """
    return get_chunker(strategy, **options).chunk(text)


__all__ = [
    "FixedSizeChunker",
    "LineChunker",
    "ParagraphChunker",
    "RegexChunker",
    "SectionChunker",
    "SentenceChunker",
    "decompose",
    "get_chunker",
    "resolve_strategy",
]
