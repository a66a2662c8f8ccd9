"""Regex search with context windows and plain substring location."""

from ctxpack.config import DEFAULT_CONTEXT_CHARS, MAX_SEARCH_RESULTS, REGEX_TIMEOUT
from ctxpack.errors import InvalidParameter
from ctxpack.models import SearchMatch
from ctxpack.utils.patterns import compile_pattern, iter_matches


def search(
    text: str,
    pattern: str,
    flags: str = "gi",
    context_chars: int = DEFAULT_CONTEXT_CHARS,
    max_results: int = MAX_SEARCH_RESULTS,
    include_line_numbers: bool = True,
    timeout: float = REGEX_TIMEOUT,
) -> list[SearchMatch]:
    """Find every match of ``pattern`` in ``text``, in ascending offset order.

    Args:
        text: Text to scan
        pattern: Regular expression
        flags: Flag letters (g, i, m, s, u, x); ``g`` is implied
        context_chars: Characters of surrounding text on each side
        max_results: Stop after this many matches
        include_line_numbers: Compute 1-based line numbers (0 otherwise)
        timeout: Matching budget in seconds

    Raises:
        InvalidPattern: pattern or flags do not compile
        PatternTimeout: matching ran past ``timeout``
    """
    if context_chars < 0:
        raise InvalidParameter(f"context_chars must not be negative, got {context_chars}")
    if max_results < 1:
        raise InvalidParameter(f"max_results must be at least 1, got {max_results}")

    compiled = compile_pattern(pattern, flags)
    results: list[SearchMatch] = []
    line_number = 1
    counted_to = 0

    for match in iter_matches(compiled, text, timeout):
        start, end = match.span()

        if include_line_numbers:
            # Count only the newlines since the previous match.
            line_number += text.count("\n", counted_to, start)
            counted_to = start

        window_start = max(0, start - context_chars)
        window_end = min(len(text), end + context_chars)
        results.append(
            SearchMatch(
                match=match.group(),
                index=start,
                line_number=line_number if include_line_numbers else 0,
                context=text[window_start:window_end],
                groups=match.groups(),
            )
        )

        if len(results) >= max_results:
            break

    return results


def find_all(text: str, substring: str, case_sensitive: bool = False) -> list[int]:
    """Return the offsets of every non-overlapping occurrence of ``substring``."""
    if not substring:
        raise InvalidParameter("substring must not be empty")

    haystack = text if case_sensitive else text.lower()
    needle = substring if case_sensitive else substring.lower()

    offsets: list[int] = []
    index = haystack.find(needle)
    while index != -1:
        offsets.append(index)
        index = haystack.find(needle, index + len(needle))
    return offsets
