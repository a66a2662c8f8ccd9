"""Session-side state produced by script execution and answer building."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from ctxpack.errors import InvalidParameter
from ctxpack.models.document import utcnow

# null / bool / number / string / list / object
JsonValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]


def to_json_value(value: Any) -> JsonValue:
    """Normalize a value through a JSON round-trip.

    Tuples become lists and non-string keys become strings; anything that
    JSON cannot represent is rejected.
    """
    try:
        return json.loads(json.dumps(value, allow_nan=False))
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"Value is not JSON-serializable: {e}") from e


@dataclass
class Answer:
    """The caller's answer; ``ready`` is whatever the caller last asserted."""

    content: str = ""
    ready: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "ready": self.ready}


@dataclass(frozen=True)
class ExecutionRecord:
    code: str
    output: str
    error: Optional[str]
    duration_ms: float
    executed_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ExecutionResult:
    """What the sandbox hands back for one script run."""

    output: str
    error: Optional[str] = None
    duration_ms: float = 0.0
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "duration_ms": round(self.duration_ms, 2),
        }
