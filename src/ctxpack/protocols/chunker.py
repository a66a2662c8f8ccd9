"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable

from ctxpack.models import Chunk, DecompositionStrategy


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for text chunking strategies.

    Implementations take their options in ``__init__`` and must be pure:
    the same text always yields the same chunks, in non-decreasing
    ``start_offset`` order with indices counting up from 0.
    """

    strategy: DecompositionStrategy

    def chunk(self, text: str) -> list[Chunk]:
        """Split text into offset-addressed chunks."""
        ...
