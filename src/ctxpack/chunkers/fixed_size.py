"""Fixed-size character chunking."""

from ctxpack.config import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP
from ctxpack.errors import InvalidParameter
from ctxpack.models import Chunk, DecompositionStrategy


class FixedSizeChunker:
    """Cut text into ``chunk_size`` windows that advance by
    ``chunk_size - overlap`` characters.

    With ``overlap=0`` the chunks concatenate back to the original text.
    When the overlap swallows the whole window the walk could never
    advance, so only the first chunk is produced.
    """

    strategy = DecompositionStrategy.FIXED_SIZE

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP):
        if chunk_size < 1:
            raise InvalidParameter(f"chunk_size must be at least 1, got {chunk_size}")
        if overlap < 0:
            raise InvalidParameter(f"overlap must not be negative, got {overlap}")
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        step = self.chunk_size - self.overlap
        offset = 0

        while offset < len(text):
            end = min(offset + self.chunk_size, len(text))
            chunks.append(
                Chunk(
                    index=len(chunks),
                    content=text[offset:end],
                    start_offset=offset,
                    end_offset=end,
                )
            )
            if step <= 0:
                break
            offset += step

        return chunks
