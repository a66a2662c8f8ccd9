"""Line-based chunking with line overlap."""

from ctxpack.config import DEFAULT_LINE_OVERLAP, DEFAULT_LINES_PER_CHUNK
from ctxpack.errors import InvalidParameter
from ctxpack.models import Chunk, DecompositionStrategy


class LineChunker:
    """Group ``lines_per_chunk`` consecutive lines per chunk.

    Each step advances ``max(1, lines_per_chunk - overlap)`` lines. Offsets
    are character offsets into the original text, accumulated from the
    lengths of the lines stepped over (+1 for each newline).
    """

    strategy = DecompositionStrategy.BY_LINES

    def __init__(
        self,
        lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
        overlap: int = DEFAULT_LINE_OVERLAP,
    ):
        if lines_per_chunk < 1:
            raise InvalidParameter(
                f"lines_per_chunk must be at least 1, got {lines_per_chunk}"
            )
        if overlap < 0:
            raise InvalidParameter(f"overlap must not be negative, got {overlap}")
        self.lines_per_chunk = lines_per_chunk
        self.overlap = overlap

    def chunk(self, text: str) -> list[Chunk]:
        if not text:
            return []

        lines = text.split("\n")
        # A final newline terminates the last line; it does not open a new one.
        if text.endswith("\n"):
            lines.pop()

        advance = max(1, self.lines_per_chunk - self.overlap)
        chunks: list[Chunk] = []
        line_index = 0
        char_offset = 0

        while line_index < len(lines):
            window = lines[line_index : line_index + self.lines_per_chunk]
            content = "\n".join(window)
            chunks.append(
                Chunk(
                    index=len(chunks),
                    content=content,
                    start_offset=char_offset,
                    end_offset=char_offset + len(content),
                    metadata={
                        "start_line": line_index,
                        "end_line": line_index + len(window) - 1,
                    },
                )
            )

            for line in lines[line_index : line_index + advance]:
                char_offset += len(line) + 1
            line_index += advance

        return chunks
