"""Text statistics and decomposition strategy suggestion."""

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from ctxpack.models import DecompositionStrategy, StructureType

WORD_SPLIT = re.compile(r"\s+")
SENTENCE_SPLIT = re.compile(r"[.!?]+")
PARAGRAPH_SPLIT = re.compile(r"\n\n+")

MANY_PARAGRAPHS = 10
LARGE_DOCUMENT = 50_000


@dataclass(frozen=True)
class TextStatistics:
    length: int
    line_count: int
    word_count: int
    sentence_count: int
    paragraph_count: int
    avg_line_length: int
    avg_word_length: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class StrategySuggestion:
    """A recommended strategy with the options to pass to it."""

    strategy: DecompositionStrategy
    reason: str
    options: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "reason": self.reason,
            "options": dict(self.options),
        }


def get_statistics(text: str) -> TextStatistics:
    """Compute aggregate counts and rounded averages for ``text``."""
    lines = text.split("\n")
    words = [w for w in WORD_SPLIT.split(text) if w]
    sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
    paragraphs = [p for p in PARAGRAPH_SPLIT.split(text) if p.strip()]

    return TextStatistics(
        length=len(text),
        line_count=len(lines),
        word_count=len(words),
        sentence_count=len(sentences),
        paragraph_count=len(paragraphs),
        avg_line_length=round(len(text) / len(lines)),
        avg_word_length=round(sum(len(w) for w in words) / len(words)) if words else 0,
    )


def suggest_strategy(
    text: str,
    structure: StructureType,
    stats: Optional[TextStatistics] = None,
) -> StrategySuggestion:
    """Pick a decomposition strategy for ``text``.

    A fixed decision table keyed on the structure tag, falling back to size
    and paragraph heuristics for plain text. Deterministic for identical
    input; not a guarantee of the best split.
    """
    if structure is StructureType.JSON:
        return StrategySuggestion(
            DecompositionStrategy.FIXED_SIZE,
            "JSON data works best with fixed-size chunks to avoid breaking structure",
            {"chunk_size": 20000, "overlap": 500},
        )
    if structure is StructureType.CSV:
        return StrategySuggestion(
            DecompositionStrategy.BY_LINES,
            "CSV data should be chunked by rows to preserve record integrity",
            {"lines_per_chunk": 200, "overlap": 0},
        )
    if structure is StructureType.MARKDOWN:
        return StrategySuggestion(
            DecompositionStrategy.BY_SECTIONS,
            "Markdown content has natural section boundaries",
        )
    if structure is StructureType.CODE:
        return StrategySuggestion(
            DecompositionStrategy.BY_LINES,
            "Code should be chunked by lines to preserve context",
            {"lines_per_chunk": 100, "overlap": 20},
        )
    if structure is StructureType.LOG:
        return StrategySuggestion(
            DecompositionStrategy.BY_LINES,
            "Log files are naturally line-based",
            {"lines_per_chunk": 500, "overlap": 50},
        )

    stats = stats or get_statistics(text)
    if stats.paragraph_count > MANY_PARAGRAPHS:
        return StrategySuggestion(
            DecompositionStrategy.BY_PARAGRAPHS,
            "Document has clear paragraph structure",
        )
    if stats.length > LARGE_DOCUMENT:
        return StrategySuggestion(
            DecompositionStrategy.FIXED_SIZE,
            "Large document requires fixed-size chunking",
            {"chunk_size": 10000, "overlap": 200},
        )
    return StrategySuggestion(
        DecompositionStrategy.BY_SENTENCES,
        "Default to sentence-based chunking for general text",
    )
