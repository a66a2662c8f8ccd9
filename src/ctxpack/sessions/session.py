"""Session state: contexts, variables, answer and execution history."""

import logging
import threading
import time
from collections import deque
from datetime import datetime
from typing import Any, Callable, Optional

from ctxpack.analysis import describe
from ctxpack.config import MAX_EXECUTION_HISTORY
from ctxpack.errors import ContextNotFound, VariableNotFound
from ctxpack.models import Answer, Context, ExecutionRecord, JsonValue, to_json_value, utcnow

logger = logging.getLogger(__name__)


class Session:
    """An isolated unit of state.

    ``lock`` is re-entrant; tool operations hold it for their whole
    duration so that operations on one session are totally ordered. Every
    public method also takes it, so single calls are safe on their own.
    """

    def __init__(
        self,
        session_id: str,
        clock: Callable[[], float] = time.monotonic,
        max_history: int = MAX_EXECUTION_HISTORY,
    ):
        self.id = session_id
        self.created_at: datetime = utcnow()
        self.last_activity_at: datetime = self.created_at
        self.lock = threading.RLock()

        self._clock = clock
        self._last_activity = clock()
        self._contexts: dict[str, Context] = {}
        self._variables: dict[str, JsonValue] = {}
        self._answer = Answer()
        self._history: deque[ExecutionRecord] = deque(maxlen=max_history)
        self._execution_count = 0

    # Activity

    @property
    def last_activity(self) -> float:
        """Clock reading of the last bound operation."""
        return self._last_activity

    def touch(self) -> None:
        self._last_activity = self._clock()
        self.last_activity_at = utcnow()

    def idle_for(self, now: Optional[float] = None) -> float:
        return (self._clock() if now is None else now) - self._last_activity

    # Contexts

    def load_context(self, context_id: str, content: str) -> Context:
        """Store ``content`` under ``context_id``, replacing any previous one.

        The new Context is fully built before the swap, so readers see
        either the old object or the new one.
        """
        context = Context(id=context_id, content=content, metadata=describe(content))
        with self.lock:
            replaced = context_id in self._contexts
            self._contexts[context_id] = context
            self.touch()
        logger.info(
            f"Session {self.id}: {'reloaded' if replaced else 'loaded'} context "
            f"'{context_id}' ({context.metadata.length} chars, {context.metadata.structure.value})"
        )
        return context

    def get_context(self, context_id: str) -> Context:
        with self.lock:
            context = self._contexts.get(context_id)
        if context is None:
            raise ContextNotFound(context_id)
        return context

    @property
    def contexts(self) -> dict[str, Context]:
        with self.lock:
            return dict(self._contexts)

    # Variables

    def set_variable(self, name: str, value: Any) -> JsonValue:
        normalized = to_json_value(value)
        with self.lock:
            self._variables[name] = normalized
            self.touch()
        return normalized

    def get_variable(self, name: str) -> JsonValue:
        with self.lock:
            if name not in self._variables:
                raise VariableNotFound(name)
            return self._variables[name]

    def list_variables(self) -> list[str]:
        with self.lock:
            return list(self._variables)

    # Answer

    def set_answer(self, content: str, ready: bool = False) -> Answer:
        with self.lock:
            self._answer = Answer(content=str(content), ready=bool(ready))
            self.touch()
            return Answer(self._answer.content, self._answer.ready)

    @property
    def answer(self) -> Answer:
        with self.lock:
            return Answer(self._answer.content, self._answer.ready)

    # Execution history

    def record_execution(self, record: ExecutionRecord) -> None:
        with self.lock:
            self._history.append(record)
            self._execution_count += 1
            self.touch()

    @property
    def history(self) -> list[ExecutionRecord]:
        with self.lock:
            return list(self._history)

    @property
    def execution_count(self) -> int:
        """Executions recorded since the last clear, including rotated ones."""
        return self._execution_count

    # Lifecycle

    def clear(self) -> None:
        """Drop contents while keeping the session's identity."""
        with self.lock:
            self._contexts.clear()
            self._variables.clear()
            self._answer = Answer()
            self._history.clear()
            self._execution_count = 0
            self.touch()
        logger.info(f"Session {self.id}: cleared")

    def info(self) -> dict[str, Any]:
        with self.lock:
            return {
                "session_id": self.id,
                "created_at": self.created_at.isoformat(),
                "last_activity": self.last_activity_at.isoformat(),
                "contexts": [
                    {
                        "id": context_id,
                        "length": context.metadata.length,
                        "structure": context.metadata.structure.value,
                    }
                    for context_id, context in self._contexts.items()
                ],
                "variables": list(self._variables),
                "execution_count": self._execution_count,
                "answer_ready": self._answer.ready,
            }
