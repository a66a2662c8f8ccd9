"""Markdown section chunking."""

import re

from ctxpack.models import Chunk, DecompositionStrategy

HEADER_PATTERN = re.compile(r"^(#{1,6})[ \t]+(\S.*?)[ \t]*$", re.MULTILINE)


class SectionChunker:
    """One chunk per Markdown header, running to the next header.

    Text before the first header becomes a ``preamble`` chunk. Text without
    any header comes back whole as a single untagged chunk (an empty text
    included).
    """

    strategy = DecompositionStrategy.BY_SECTIONS

    def chunk(self, text: str) -> list[Chunk]:
        headers = [
            (m.start(), len(m.group(1)), m.group(2).strip())
            for m in HEADER_PATTERN.finditer(text)
        ]

        if not headers:
            return [Chunk(index=0, content=text, start_offset=0, end_offset=len(text))]

        chunks: list[Chunk] = []
        first_start = headers[0][0]
        preamble = text[:first_start].strip()
        if preamble:
            chunks.append(
                Chunk(
                    index=0,
                    content=preamble,
                    start_offset=0,
                    end_offset=first_start,
                    metadata={"type": "preamble"},
                )
            )

        for i, (start, level, title) in enumerate(headers):
            end = headers[i + 1][0] if i + 1 < len(headers) else len(text)
            chunks.append(
                Chunk(
                    index=len(chunks),
                    content=text[start:end].strip(),
                    start_offset=start,
                    end_offset=end,
                    metadata={"type": "section", "level": level, "title": title},
                )
            )

        return chunks
