"""Pure text analysis: structure detection, search and statistics."""

from ctxpack.analysis.search import find_all, search
from ctxpack.analysis.stats import (
    StrategySuggestion,
    TextStatistics,
    get_statistics,
    suggest_strategy,
)
from ctxpack.analysis.structure import describe, detect_structure

__all__ = [
    "StrategySuggestion",
    "TextStatistics",
    "describe",
    "detect_structure",
    "find_all",
    "get_statistics",
    "search",
    "suggest_strategy",
]
