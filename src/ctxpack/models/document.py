"""Data models for loaded contexts and the chunks cut from them."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class StructureType(str, Enum):
    """Coarse content classification driving strategy suggestion."""

    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"
    CODE = "code"
    LOG = "log"
    PLAIN = "plain"


class DecompositionStrategy(str, Enum):
    FIXED_SIZE = "fixed_size"
    BY_LINES = "by_lines"
    BY_PARAGRAPHS = "by_paragraphs"
    BY_SECTIONS = "by_sections"
    BY_REGEX = "by_regex"
    BY_SENTENCES = "by_sentences"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ContextMetadata:
    """Summary facts computed once when a context is loaded."""

    length: int
    line_count: int
    word_count: int
    structure: StructureType

    def to_dict(self) -> dict[str, Any]:
        return {
            "length": self.length,
            "line_count": self.line_count,
            "word_count": self.word_count,
            "structure": self.structure.value,
        }


@dataclass(frozen=True)
class Context:
    """A named block of text owned by one session.

    Contexts never change after loading; reloading an id swaps in a new
    object.
    """

    id: str
    content: str
    metadata: ContextMetadata
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Chunk:
    """One contiguous, offset-addressed slice of a context.

    ``index`` is the chunk's rank within a single decomposition run, not a
    durable id: the same text decomposed with different options renumbers.
    """

    index: int
    content: str
    start_offset: int
    end_offset: int
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def length(self) -> int:
        return len(self.content)

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "index": self.index,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "length": self.length,
        }
        data.update(self.metadata)
        if include_content:
            data["content"] = self.content
        return data


@dataclass(frozen=True)
class SearchMatch:
    """A single regex hit with its surrounding window."""

    match: str
    index: int
    line_number: int
    context: str
    groups: tuple[Optional[str], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "match": self.match,
            "index": self.index,
            "line_number": self.line_number,
            "context": self.context,
            "groups": list(self.groups),
        }


@dataclass(frozen=True)
class SourceFile:
    """A file yielded by an ingester; ``content`` is None for binary files."""

    path: str
    size_bytes: int
    extension: str
    is_binary: bool
    content: Optional[str] = None

    @property
    def line_count(self) -> int:
        if not self.content:
            return 0
        return self.content.count("\n") + 1
