"""Gathering a folder of documentation into a single context.

Documentation files are concatenated in path order, each under a
``--- FILE: <path> ---`` header and followed by a separator line, so the
result can be searched and decomposed like any other context while
``table_of_contents`` tells the caller which file lives where.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from ctxpack.errors import InvalidParameter
from ctxpack.ingesters.registry import get_ingester
from ctxpack.models import DecompositionStrategy, SourceFile
from ctxpack.protocols import Ingester

logger = logging.getLogger(__name__)

DOC_EXTENSIONS = (".md", ".mdx", ".txt", ".rst", ".adoc", ".html")
MARKDOWN_EXTENSIONS = (".md", ".mdx")
SEPARATOR = "=" * 80

TITLE_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
MAX_PREVIEW_CHARS = 150
PREVIEW_LINES = 10

# Strategy detection thresholds
MARKDOWN_RATIO = 0.7
LARGE_FILE_BYTES = 50_000


@dataclass(frozen=True)
class TocEntry:
    """One file of an aggregate and where it starts."""

    path: str
    title: str
    size_bytes: int
    line_count: int
    preview: str
    offset: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "title": self.title,
            "size_bytes": self.size_bytes,
            "line_count": self.line_count,
            "preview": self.preview,
            "offset": self.offset,
        }


@dataclass(frozen=True)
class Aggregate:
    content: str
    entries: list[TocEntry] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.entries)

    @property
    def total_size(self) -> int:
        return sum(entry.size_bytes for entry in self.entries)


def is_documentation(file: SourceFile) -> bool:
    return not file.is_binary and file.content is not None and file.extension in DOC_EXTENSIONS


def extract_title(content: str, path: str) -> str:
    """First level-one Markdown header, else a title made from the file name."""
    match = TITLE_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    stem = re.sub(r"[-_]", " ", Path(path).stem)
    return re.sub(r"\b\w", lambda m: m.group().upper(), stem)


def make_preview(content: str, max_chars: int = MAX_PREVIEW_CHARS) -> str:
    """Join the first meaningful lines, skipping headers and rules."""
    meaningful = [
        line.strip()
        for line in content.split("\n")[:PREVIEW_LINES]
        if line.strip() and not line.strip().startswith(("#", "---"))
    ]
    if not meaningful:
        return "No preview available"
    preview = " ".join(meaningful)
    if len(preview) > max_chars:
        return preview[:max_chars] + "..."
    return preview


def aggregate(files: Iterable[SourceFile]) -> Aggregate:
    """Concatenate documentation files into one text.

    Non-documentation files are dropped; the rest are ordered by path.

    Raises:
        InvalidParameter: no documentation files were given
    """
    docs = sorted((f for f in files if is_documentation(f)), key=lambda f: f.path)
    if not docs:
        raise InvalidParameter("No documentation files to aggregate")

    sections: list[str] = []
    entries: list[TocEntry] = []
    offset = 0
    for doc in docs:
        content = doc.content or ""
        title = extract_title(content, doc.path)
        block = "\n".join(
            [
                f"--- FILE: {doc.path} ---",
                f"Title: {title}",
                f"Size: {doc.size_bytes} bytes, Lines: {doc.line_count}",
                "",
                content,
                "",
                SEPARATOR,
                "",
            ]
        )
        entries.append(
            TocEntry(
                path=doc.path,
                title=title,
                size_bytes=doc.size_bytes,
                line_count=doc.line_count,
                preview=make_preview(content),
                offset=offset,
            )
        )
        sections.append(block)
        offset += len(block) + 1

    return Aggregate(content="\n".join(sections), entries=entries)


def detect_strategy(entries: list[TocEntry]) -> DecompositionStrategy:
    """Pick a strategy from the files: sections for Markdown-heavy sets,
    fixed-size chunks for large files, paragraphs otherwise."""
    if not entries:
        return DecompositionStrategy.BY_PARAGRAPHS

    markdown = sum(1 for e in entries if e.path.lower().endswith(MARKDOWN_EXTENSIONS))
    if markdown / len(entries) > MARKDOWN_RATIO:
        return DecompositionStrategy.BY_SECTIONS

    average_size = sum(e.size_bytes for e in entries) / len(entries)
    if average_size > LARGE_FILE_BYTES:
        return DecompositionStrategy.FIXED_SIZE

    return DecompositionStrategy.BY_PARAGRAPHS


def load_documents(source: Path | str, ingester: Optional[Ingester] = None) -> Aggregate:
    """Ingest a folder or zip archive and aggregate its documentation.

    Raises:
        InvalidParameter: the source cannot be ingested or holds no documentation
    """
    source_path = Path(source).expanduser()
    ingester = ingester or get_ingester(source_path)
    if ingester is None:
        raise InvalidParameter(f"Cannot load documents from {source_path}: not a folder or .zip archive")

    result = aggregate(ingester.ingest(source_path))
    logger.info(
        f"Aggregated {result.file_count} documentation files from {source_path} "
        f"({result.total_size} bytes)"
    )
    return result

