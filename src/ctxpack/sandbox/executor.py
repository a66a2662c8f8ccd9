"""Parent side of the script sandbox."""

import logging
import multiprocessing
import time
from multiprocessing.connection import Connection
from typing import Any, Optional

from ctxpack.config import CODE_EXECUTION_TIMEOUT, MAX_REPL_OUTPUT
from ctxpack.errors import ContextPackError, InvalidParameter, VariableNotFound
from ctxpack.models import ExecutionRecord, ExecutionResult
from ctxpack.sandbox.policy import ScriptPolicyError, validate_script
from ctxpack.sandbox.worker import describe_exception, run_script
from ctxpack.sessions import Session

logger = logging.getLogger(__name__)


class OutputBuffer:
    """Captured script output, capped at ``limit`` characters."""

    MARKER = "\n... [output truncated at {limit} characters]"

    def __init__(self, limit: int):
        self.limit = limit
        self.truncated = False
        self._parts: list[str] = []
        self._size = 0

    def write(self, text: str) -> None:
        if self.truncated:
            return
        room = self.limit - self._size
        if len(text) > room:
            text = text[:room]
            self.truncated = True
        self._parts.append(text)
        self._size += len(text)

    def getvalue(self) -> str:
        output = "".join(self._parts)
        if self.truncated:
            output += self.MARKER.format(limit=self.limit)
        return output


class ScriptSandbox:
    """Runs scripts against one session under a wall-clock limit.

    Each run gets a fresh child process that is killed at the deadline. The
    session lock is held for the whole run, so a session executes one script
    at a time and nothing else touches it meanwhile.

    Args:
        timeout: Seconds a script may run
        max_output: Characters of output kept per run
        start_method: multiprocessing start method for the child
    """

    def __init__(
        self,
        timeout: float = CODE_EXECUTION_TIMEOUT,
        max_output: int = MAX_REPL_OUTPUT,
        start_method: str = "spawn",
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if max_output < 0:
            raise ValueError("max_output must not be negative")
        self.timeout = timeout
        self.max_output = max_output
        self._mp = multiprocessing.get_context(start_method)

    def execute(self, session: Session, code: str) -> ExecutionResult:
        """Run ``code`` and record it in the session's history.

        Never raises for script problems; they come back in
        ``ExecutionResult.error``.
        """
        with session.lock:
            started = time.perf_counter()
            output = OutputBuffer(self.max_output)
            timed_out = False
            try:
                validate_script(code)
            except (SyntaxError, ScriptPolicyError) as e:
                error: Optional[str] = describe_exception(e)
            else:
                error, timed_out = self._run(session, code, output)

            result = ExecutionResult(
                output=output.getvalue(),
                error=error,
                duration_ms=(time.perf_counter() - started) * 1000,
                timed_out=timed_out,
            )
            session.record_execution(
                ExecutionRecord(
                    code=code,
                    output=result.output,
                    error=result.error,
                    duration_ms=result.duration_ms,
                )
            )

        if result.success:
            logger.info(f"Session {session.id}: script finished in {result.duration_ms:.0f}ms")
        else:
            logger.info(
                f"Session {session.id}: script failed after {result.duration_ms:.0f}ms: {result.error}"
            )
        return result

    def _run(self, session: Session, code: str, output: OutputBuffer) -> tuple[Optional[str], bool]:
        parent_conn, child_conn = self._mp.Pipe(duplex=True)
        process = self._mp.Process(
            target=run_script,
            args=(child_conn, code, self.max_output),
            name=f"ctxpack-script-{session.id}",
            daemon=True,
        )
        process.start()
        child_conn.close()
        deadline = time.monotonic() + self.timeout

        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return f"ExecutionTimeout: script exceeded {self.timeout:g}s", True
                if not parent_conn.poll(remaining):
                    continue
                try:
                    message = parent_conn.recv()
                except EOFError:
                    process.join(timeout=1)
                    return (
                        "ExecutionRuntimeError: script process exited without reporting "
                        f"(exit code {process.exitcode})",
                        False,
                    )
                if message[0] == "done":
                    return message[1], False
                self._handle(session, parent_conn, message, output)
        finally:
            if process.is_alive():
                process.kill()
            process.join(timeout=5)
            parent_conn.close()

    def _handle(self, session: Session, conn: Connection, message: tuple, output: OutputBuffer) -> None:
        kind = message[0]
        if kind == "print":
            output.write(message[1])
        elif kind == "call":
            _, operation, args = message
            try:
                value = self._answer(session, operation, args)
            except ContextPackError as e:
                conn.send(("error", str(e)))
            else:
                conn.send(("ok", value))
        else:
            try:
                if kind == "set_var":
                    session.set_variable(message[1], message[2])
                elif kind == "set_answer":
                    session.set_answer(message[1], message[2])
                else:
                    logger.warning(f"Session {session.id}: ignoring unknown script message {kind!r}")
            except ContextPackError as e:
                logger.warning(f"Session {session.id}: rejected script write: {e}")

    def _answer(self, session: Session, operation: str, args: tuple) -> Any:
        if operation == "get_context":
            return session.get_context(args[0]).content
        if operation == "get_context_metadata":
            context = session.get_context(args[0])
            return {
                "id": context.id,
                "created_at": context.created_at.isoformat(),
                **context.metadata.to_dict(),
            }
        if operation == "list_contexts":
            return list(session.contexts)
        if operation == "get_var":
            try:
                return [True, session.get_variable(args[0])]
            except VariableNotFound:
                return [False, None]
        if operation == "list_vars":
            return session.list_variables()
        if operation == "get_answer":
            return session.answer.to_dict()
        raise InvalidParameter(f"Unknown script call {operation!r}")
