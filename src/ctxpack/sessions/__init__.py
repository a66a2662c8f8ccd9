"""Session lifecycle management."""

from ctxpack.sessions.registry import SessionRegistry
from ctxpack.sessions.session import Session

__all__ = ["Session", "SessionRegistry"]
