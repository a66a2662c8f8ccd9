"""Child-process side of the script sandbox.

The child never sees a Session. Everything a script does to session state
becomes a message on the pipe back to the parent:

    ("print", text)
    ("set_var", name, value)
    ("set_answer", content, ready)
    ("call", operation, args)   -> parent replies ("ok", value) | ("error", message)
    ("done", error_or_None)
"""

import traceback
from multiprocessing.connection import Connection
from typing import Any, Optional

from ctxpack.config import DEFAULT_CONTEXT_ID, MAX_ID_LENGTH
from ctxpack.errors import InvalidParameter
from ctxpack.models import to_json_value
from ctxpack.sandbox.helpers import HELPERS
from ctxpack.sandbox.policy import SCRIPT_FILENAME, ScriptPolicyError, build_builtins, validate_script


class ScriptChannel:
    """Script-side end of the pipe.

    Output beyond ``max_output`` (plus one character, so the parent can tell
    the cap was hit) is never sent.
    """

    def __init__(self, conn: Connection, max_output: int):
        self._conn = conn
        self._budget = max_output + 1

    def emit(self, text: str) -> None:
        if self._budget <= 0 or not text:
            return
        text = text[: self._budget]
        self._budget -= len(text)
        self._conn.send(("print", text))

    def notify(self, kind: str, *payload: Any) -> None:
        self._conn.send((kind, *payload))

    def call(self, operation: str, *args: Any) -> Any:
        self._conn.send(("call", operation, args))
        status, payload = self._conn.recv()
        if status == "error":
            raise LookupError(payload)
        return payload

    def finish(self, error: Optional[str]) -> None:
        self._conn.send(("done", error))


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not 1 <= len(name) <= MAX_ID_LENGTH:
        raise InvalidParameter(f"Variable name must be a string of 1-{MAX_ID_LENGTH} characters")
    return name


def build_namespace(channel: ScriptChannel) -> dict[str, Any]:
    """Globals for one script run: helpers, session capabilities and builtins."""

    def script_print(*args: Any, sep: str = " ", end: str = "\n") -> None:
        channel.emit(sep.join(str(arg) for arg in args) + end)

    def get_context(context_id: str = DEFAULT_CONTEXT_ID) -> str:
        return channel.call("get_context", context_id)

    def get_context_metadata(context_id: str = DEFAULT_CONTEXT_ID) -> dict[str, Any]:
        return channel.call("get_context_metadata", context_id)

    def list_contexts() -> list[str]:
        return channel.call("list_contexts")

    def set_var(name: str, value: Any) -> None:
        channel.notify("set_var", _check_name(name), to_json_value(value))

    def get_var(name: str, default: Any = None) -> Any:
        found, value = channel.call("get_var", _check_name(name))
        return value if found else default

    def list_vars() -> list[str]:
        return channel.call("list_vars")

    def set_answer(content: Any, ready: bool = False) -> None:
        channel.notify("set_answer", str(content), bool(ready))

    def get_answer() -> dict[str, Any]:
        return channel.call("get_answer")

    capabilities = {
        "print": script_print,
        "get_context": get_context,
        "get_context_metadata": get_context_metadata,
        "list_contexts": list_contexts,
        "set_var": set_var,
        "get_var": get_var,
        "list_vars": list_vars,
        "set_answer": set_answer,
        "get_answer": get_answer,
    }

    namespace: dict[str, Any] = {"__name__": "__script__"}
    namespace.update(HELPERS)
    namespace.update(capabilities)
    namespace["__builtins__"] = build_builtins(print=script_print)
    return namespace


def _script_line(exc: BaseException) -> Optional[int]:
    if isinstance(exc, (SyntaxError, ScriptPolicyError)):
        return exc.lineno
    line = None
    for frame in traceback.extract_tb(exc.__traceback__):
        if frame.filename == SCRIPT_FILENAME:
            line = frame.lineno
    return line


def describe_exception(exc: BaseException) -> str:
    """Render a script failure as ``ExecutionRuntimeError: <Type>: <msg> (line N)``."""
    detail = exc.msg if isinstance(exc, SyntaxError) else str(exc)
    message = f"ExecutionRuntimeError: {type(exc).__name__}: {detail}"
    line = _script_line(exc)
    if line is not None:
        message += f" (line {line})"
    return message


def run_script(conn: Connection, code: str, max_output: int) -> None:
    """Process entry point: run ``code`` and report how it ended."""
    channel = ScriptChannel(conn, max_output)
    error = None
    try:
        tree = validate_script(code)
        exec(compile(tree, SCRIPT_FILENAME, "exec"), build_namespace(channel))
    except Exception as e:
        error = describe_exception(e)
    try:
        channel.finish(error)
    finally:
        conn.close()
