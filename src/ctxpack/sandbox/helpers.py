"""Text, sequence and regex helpers injected into sandboxed scripts.

All of these are pure; session access goes through the channel functions
in ``ctxpack.sandbox.worker`` instead.
"""

import functools
from typing import Any, Callable, Iterable, Optional

from ctxpack.config import REGEX_TIMEOUT
from ctxpack.errors import InvalidParameter, PatternTimeout
from ctxpack.utils.patterns import compile_pattern, iter_matches

_MISSING = object()


# Text

def split(text: str, sep: Optional[str] = None, maxsplit: int = -1) -> list[str]:
    return str(text).split(sep, maxsplit)


def join(items: Iterable[Any], sep: str = "") -> str:
    return sep.join(str(item) for item in items)


def lines(text: str) -> list[str]:
    return str(text).split("\n")


def trim(text: str) -> str:
    return str(text).strip()


def lower(text: str) -> str:
    return str(text).lower()


def upper(text: str) -> str:
    return str(text).upper()


# Regex

def search(pattern: str, text: str, flags: str = "") -> list[dict[str, Any]]:
    """Every match of ``pattern`` in ``text`` as ``{match, index, groups}``."""
    compiled = compile_pattern(pattern, flags)
    return [
        {"match": m.group(), "index": m.start(), "groups": list(m.groups())}
        for m in iter_matches(compiled, str(text))
    ]


def find_all(pattern: str, text: str, flags: str = "") -> list[str]:
    """The matched strings of ``pattern`` in ``text``."""
    compiled = compile_pattern(pattern, flags)
    return [m.group() for m in iter_matches(compiled, str(text))]


def replace(text: str, pattern: str, replacement: str, flags: str = "", count: int = 0) -> str:
    compiled = compile_pattern(pattern, flags)
    try:
        return compiled.sub(replacement, str(text), count=count, timeout=REGEX_TIMEOUT)
    except TimeoutError as e:
        raise PatternTimeout(f"Pattern {pattern!r} exceeded its matching budget") from e


# Sequences

def reduce(items: Iterable[Any], fn: Callable[[Any, Any], Any], initial: Any = _MISSING) -> Any:
    if initial is _MISSING:
        return functools.reduce(fn, items)
    return functools.reduce(fn, items, initial)


def unique(items: Iterable[Any]) -> list[Any]:
    """Distinct items in first-seen order (unhashable items compared by ==)."""
    result: list[Any] = []
    seen: set = set()
    for item in items:
        try:
            if item in seen:
                continue
            seen.add(item)
        except TypeError:
            if item in result:
                continue
        result.append(item)
    return result


def chunked(items: Iterable[Any], size: int) -> list[list[Any]]:
    if size < 1:
        raise InvalidParameter(f"size must be at least 1, got {size}")
    sequence = list(items)
    return [sequence[i : i + size] for i in range(0, len(sequence), size)]


def sort_copy(items: Iterable[Any], key: Optional[Callable] = None, reverse: bool = False) -> list[Any]:
    return sorted(items, key=key, reverse=reverse)


HELPERS: dict[str, Callable[..., Any]] = {
    "split": split,
    "join": join,
    "lines": lines,
    "trim": trim,
    "lower": lower,
    "upper": upper,
    "search": search,
    "find_all": find_all,
    "replace": replace,
    "reduce": reduce,
    "unique": unique,
    "chunked": chunked,
    "sort_copy": sort_copy,
}
