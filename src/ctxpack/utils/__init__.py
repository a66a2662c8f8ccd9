"""Utility functions for ctxpack."""

from ctxpack.utils.binary import decode_text, detect_binary, is_binary_content, is_binary_extension
from ctxpack.utils.patterns import compile_pattern, iter_matches, parse_flags

__all__ = [
    "compile_pattern",
    "decode_text",
    "detect_binary",
    "is_binary_content",
    "is_binary_extension",
    "iter_matches",
    "parse_flags",
]
