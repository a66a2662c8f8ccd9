"""Structure detection from superficial text signals."""

import re

from ctxpack.models import ContextMetadata, StructureType

SAMPLE_CHARS = 20_000
SAMPLE_LINES = 100

LOG_RATIO = 0.5
CODE_RATIO = 0.2
CSV_CONSISTENCY = 0.8
CSV_DELIMITERS = (",", "\t", ";", "|")

LOG_LINE = re.compile(
    r"^\s*\[?("
    r"\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}"  # ISO timestamp
    r"|\d{2}:\d{2}:\d{2}"  # bare clock time
    r"|[A-Z][a-z]{2} [ \d]\d \d{2}:\d{2}"  # syslog
    r"|(TRACE|DEBUG|INFO|WARN|WARNING|ERROR|FATAL|CRITICAL)\b"
    r")"
)
MARKDOWN_HEADER = re.compile(r"^#{1,6}[ \t]+\S")
MARKDOWN_FENCE = re.compile(r"^\s*(```|~~~)")
CODE_LINE = re.compile(
    r"^\s*("
    r"def |class |import |from \S+ import |async def |return\b|if __name__"
    r"|function\b|const |let |var |export |interface |type \w+ ="
    r"|public |private |protected |static |package |using |namespace "
    r"|fn |func |impl |struct |enum |#include|#define"
    r")"
    r"|[{};]\s*$"
)


def detect_structure(text: str) -> StructureType:
    """Classify text as JSON, CSV, Markdown, Code, Log or Plain.

    Only a leading sample is inspected, so the cost is bounded however long
    the text is.
    """
    sample = text[:SAMPLE_CHARS].lstrip()
    if not sample:
        return StructureType.PLAIN

    lines = [line for line in sample.splitlines()[:SAMPLE_LINES] if line.strip()]

    if sample[0] == "{":
        return StructureType.JSON
    if sample[0] == "[" and not LOG_LINE.match(lines[0]):
        return StructureType.JSON

    if _ratio(lines, LOG_LINE) >= LOG_RATIO:
        return StructureType.LOG
    if _looks_like_csv(lines):
        return StructureType.CSV

    code_ratio = _ratio(lines, CODE_LINE)
    has_fences = any(MARKDOWN_FENCE.match(line) for line in lines)
    has_headers = any(MARKDOWN_HEADER.match(line) for line in lines)
    if has_fences or (has_headers and code_ratio < CODE_RATIO):
        return StructureType.MARKDOWN
    if code_ratio >= CODE_RATIO:
        return StructureType.CODE

    return StructureType.PLAIN


def describe(text: str) -> ContextMetadata:
    """Compute the metadata stored alongside a loaded context."""
    return ContextMetadata(
        length=len(text),
        line_count=text.count("\n") + 1,
        word_count=len(text.split()),
        structure=detect_structure(text),
    )


def _ratio(lines: list[str], pattern: re.Pattern) -> float:
    if not lines:
        return 0.0
    return sum(1 for line in lines if pattern.search(line)) / len(lines)


def _looks_like_csv(lines: list[str]) -> bool:
    """At least two rows whose delimiter count matches the header row."""
    if len(lines) < 2:
        return False
    header = lines[0]
    for delimiter in CSV_DELIMITERS:
        expected = header.count(delimiter)
        if expected == 0:
            continue
        matching = sum(1 for line in lines[1:] if line.count(delimiter) == expected)
        if matching / (len(lines) - 1) >= CSV_CONSISTENCY:
            return True
    return False
