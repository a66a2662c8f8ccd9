"""Regex compilation and time-bounded matching.

Patterns are compiled with the ``regex`` library so that every scan over
caller text can carry a timeout. Flags use the single-letter spelling the
tool surface accepts (``"gi"``, ``"m"``...).
"""

from typing import Iterator

import regex

from ctxpack.config import REGEX_TIMEOUT
from ctxpack.errors import InvalidPattern, PatternTimeout

FLAG_MAP = {
    "i": regex.IGNORECASE,
    "m": regex.MULTILINE,
    "s": regex.DOTALL,
    "x": regex.VERBOSE,
}

# Scans are always global and str patterns are always unicode.
IGNORED_FLAGS = frozenset("gu")


def parse_flags(flags: str) -> int:
    """Translate a flag string into ``regex`` flag bits."""
    bits = 0
    for letter in flags or "":
        if letter in IGNORED_FLAGS:
            continue
        if letter not in FLAG_MAP:
            raise InvalidPattern(f"Invalid regex flag '{letter}' in '{flags}'")
        bits |= FLAG_MAP[letter]
    return bits


def compile_pattern(pattern: str, flags: str = "") -> regex.Pattern:
    """Compile a caller-supplied pattern.

    Raises:
        InvalidPattern: if the pattern or its flags are malformed
    """
    bits = parse_flags(flags)
    try:
        return regex.compile(pattern, bits)
    except (regex.error, TypeError, ValueError) as e:
        raise InvalidPattern(f"Invalid regex pattern {pattern!r}: {e}") from e


def iter_matches(
    compiled: regex.Pattern, text: str, timeout: float = REGEX_TIMEOUT
) -> Iterator[regex.Match]:
    """Yield matches left to right, bounded by ``timeout`` seconds.

    Empty matches never repeat at the same position, so the scan always
    terminates.
    """
    try:
        yield from compiled.finditer(text, timeout=timeout)
    except TimeoutError as e:
        raise PatternTimeout(
            f"Pattern {compiled.pattern!r} exceeded its {timeout:g}s matching budget"
        ) from e
