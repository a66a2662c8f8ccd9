"""Sentence chunking."""

import re

from ctxpack.models import Chunk, DecompositionStrategy

SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+\s*")


class SentenceChunker:
    """Split on runs of non-terminators ending in one or more ``.``/``!``/``?``.

    Offsets cover the sentence plus its trailing whitespace; content is
    trimmed. Text after the last terminator is kept as a final chunk, so
    text with no terminator at all comes back as one chunk.
    """

    strategy = DecompositionStrategy.BY_SENTENCES

    def chunk(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        position = 0

        for match in SENTENCE_PATTERN.finditer(text):
            sentence = match.group().strip()
            if sentence:
                chunks.append(
                    Chunk(
                        index=len(chunks),
                        content=sentence,
                        start_offset=match.start(),
                        end_offset=match.end(),
                    )
                )
            position = match.end()

        tail = text[position:].strip()
        if tail:
            chunks.append(
                Chunk(
                    index=len(chunks),
                    content=tail,
                    start_offset=position,
                    end_offset=len(text),
                )
            )

        return chunks
