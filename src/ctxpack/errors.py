"""Error taxonomy for the context engine.

Every error carries a stable ``code`` so the tool layer can report it as a
structured failure instead of letting it escape the process.
"""


class ContextPackError(Exception):
    """Base class for ctxpack errors."""

    code = "error"

    def to_dict(self) -> dict:
        return {"code": self.code, "type": type(self).__name__, "message": str(self)}


class SessionNotFound(ContextPackError):
    """Unknown or expired session id."""

    code = "session_not_found"

    def __init__(self, session_id: str):
        super().__init__(f'Session "{session_id}" not found')
        self.session_id = session_id


class ContextNotFound(ContextPackError):
    """Unknown context id in a resolved session."""

    code = "context_not_found"

    def __init__(self, context_id: str):
        super().__init__(f'Context "{context_id}" not found')
        self.context_id = context_id


class VariableNotFound(ContextPackError):
    code = "variable_not_found"

    def __init__(self, name: str):
        super().__init__(f'Variable "{name}" not found')
        self.name = name


class InvalidPattern(ContextPackError):
    """A regular expression (or its flags) failed to compile."""

    code = "invalid_pattern"


class PatternTimeout(ContextPackError):
    """A regular expression ran past its matching budget."""

    code = "pattern_timeout"


class InvalidParameter(ContextPackError):
    code = "invalid_parameter"


class ExecutionTimeout(ContextPackError):
    code = "execution_timeout"


class ExecutionRuntimeError(ContextPackError):
    code = "execution_error"
