"""Paragraph-based chunking strategy."""

from ctxpack.chunkers.regex_chunker import RegexChunker
from ctxpack.config import REGEX_TIMEOUT
from ctxpack.models import DecompositionStrategy


class ParagraphChunker(RegexChunker):
    """Split on runs of blank lines (\\n\\n+), dropping empty paragraphs."""

    strategy = DecompositionStrategy.BY_PARAGRAPHS

    PARAGRAPH_BREAK = r"\n\n+"

    def __init__(self, timeout: float = REGEX_TIMEOUT):
        super().__init__(self.PARAGRAPH_BREAK, timeout=timeout)
