"""Data models for ctxpack."""

from ctxpack.models.document import (
    Chunk,
    Context,
    ContextMetadata,
    DecompositionStrategy,
    SearchMatch,
    SourceFile,
    StructureType,
    utcnow,
)
from ctxpack.models.execution import (
    Answer,
    ExecutionRecord,
    ExecutionResult,
    JsonValue,
    to_json_value,
)

__all__ = [
    "Answer",
    "Chunk",
    "Context",
    "ContextMetadata",
    "DecompositionStrategy",
    "ExecutionRecord",
    "ExecutionResult",
    "JsonValue",
    "SearchMatch",
    "SourceFile",
    "StructureType",
    "to_json_value",
    "utcnow",
]
