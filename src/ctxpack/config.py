"""Limits and defaults for the context engine."""

from dataclasses import dataclass
from typing import Optional

SERVER_NAME = "ctxpack"

# Response limits
CHARACTER_LIMIT = 100_000  # Max serialized tool response
MAX_REPL_OUTPUT = 50_000  # Max captured script output per execution

# Context limits
DEFAULT_PREVIEW_LENGTH = 2000
MAX_CONTEXT_PREVIEW = 10_000
MAX_SEARCH_RESULTS = 500
DEFAULT_SEARCH_RESULTS = 50
DEFAULT_CONTEXT_CHARS = 100
MAX_CONTEXT_CHARS = 1000

# Chunking defaults
DEFAULT_CHUNK_SIZE = 10_000
MAX_CHUNK_SIZE = 200_000
DEFAULT_OVERLAP = 200
MAX_OVERLAP = 10_000
DEFAULT_LINES_PER_CHUNK = 100
MAX_LINES_PER_CHUNK = 10_000
DEFAULT_LINE_OVERLAP = 10
DEFAULT_SPLIT_PATTERN = r"\n\n+"
MAX_CHUNK_REQUEST = 50
TRUNCATED_CHUNK_PREVIEW = 10

# Regex matching budget (seconds)
REGEX_TIMEOUT = 5.0

# Code execution
CODE_EXECUTION_TIMEOUT = 30.0
MAX_EXECUTION_HISTORY = 1000

# Session management
DEFAULT_SESSION_ID = "default"
DEFAULT_CONTEXT_ID = "main"
MAX_ID_LENGTH = 100
SESSION_TIMEOUT = 3600.0
MAX_SESSIONS = 100
MAX_SWEEP_INTERVAL = 60.0


@dataclass(frozen=True)
class EngineConfig:
    """Runtime-tunable settings shared by the registry and the sandbox."""

    session_timeout: float = SESSION_TIMEOUT
    max_sessions: int = MAX_SESSIONS
    execution_timeout: float = CODE_EXECUTION_TIMEOUT
    max_output_chars: int = MAX_REPL_OUTPUT
    max_history: int = MAX_EXECUTION_HISTORY
    regex_timeout: float = REGEX_TIMEOUT
    sweep_interval: Optional[float] = None

    def __post_init__(self) -> None:
        if self.session_timeout <= 0:
            raise ValueError("session_timeout must be positive")
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        if self.execution_timeout <= 0:
            raise ValueError("execution_timeout must be positive")
        if self.max_history < 1:
            raise ValueError("max_history must be at least 1")

    @property
    def effective_sweep_interval(self) -> float:
        """Sweep period; never longer than the inactivity timeout."""
        interval = self.sweep_interval or min(self.session_timeout, MAX_SWEEP_INTERVAL)
        return min(interval, self.session_timeout)
