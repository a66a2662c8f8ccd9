"""Session registry: creation, lookup, capacity and inactivity eviction."""

import logging
import threading
import time
import uuid
from typing import Callable, Optional

from ctxpack.config import DEFAULT_SESSION_ID, EngineConfig
from ctxpack.errors import SessionNotFound
from ctxpack.sessions.session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns every Session identity.

    Nothing is global: the serving layer constructs one registry, calls
    ``start()`` to begin the inactivity sweep and ``shutdown()`` to evict
    everything and stop it. The registry can also be used as a context
    manager.

    Args:
        config: Timeout and capacity settings
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or EngineConfig()
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __enter__(self) -> "SessionRegistry":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    # Lookup and creation

    def create_session(self, session_id: Optional[str] = None) -> Session:
        """Create a session, evicting the least recently active one when full.

        An existing id is returned as is (and counts as activity).
        """
        with self._lock:
            if session_id is not None and session_id in self._sessions:
                session = self._sessions[session_id]
                session.touch()
                return session

            while len(self._sessions) >= self.config.max_sessions:
                oldest = min(self._sessions.values(), key=lambda s: s.last_activity)
                self._evict(oldest.id, reason="capacity")

            session = Session(
                session_id or uuid.uuid4().hex,
                clock=self._clock,
                max_history=self.config.max_history,
            )
            self._sessions[session.id] = session

        logger.info(f"Created session {session.id} ({len(self)}/{self.config.max_sessions})")
        return session

    def get_session(self, session_id: str) -> Session:
        """Look up a session and mark it active.

        Raises:
            SessionNotFound: unknown or evicted id
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            session.touch()
            return session

    def get_default_session(self) -> Session:
        """Return the well-known default session, creating it on first use."""
        return self.create_session(DEFAULT_SESSION_ID)

    def resolve(self, session_id: Optional[str] = None) -> Session:
        """Map an optional id to a session; ``None`` means the default."""
        if session_id is None:
            return self.get_default_session()
        return self.get_session(session_id)

    # Eviction

    def evict(self, session_id: str) -> bool:
        with self._lock:
            return self._evict(session_id, reason="explicit")

    def sweep(self) -> list[str]:
        """Evict every session idle longer than the configured timeout."""
        now = self._clock()
        with self._lock:
            expired = [
                s.id
                for s in self._sessions.values()
                if s.idle_for(now) > self.config.session_timeout
            ]
            for session_id in expired:
                self._evict(session_id, reason="inactivity")
        return expired

    def _evict(self, session_id: str, reason: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info(f"Evicted session {session_id} ({reason})")
        return True

    # Background sweep

    def start(self) -> None:
        """Start the periodic inactivity sweep (idempotent)."""
        with self._lock:
            if self._sweeper is not None and self._sweeper.is_alive():
                return
            self._stop.clear()
            self._sweeper = threading.Thread(
                target=self._sweep_loop, name="ctxpack-session-sweep", daemon=True
            )
            self._sweeper.start()
        logger.info(
            f"Session sweep started (timeout {self.config.session_timeout:g}s, "
            f"every {self.config.effective_sweep_interval:g}s)"
        )

    def shutdown(self) -> None:
        """Stop the sweep and evict all sessions."""
        self._stop.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=5)
        self._sweeper = None
        with self._lock:
            for session_id in list(self._sessions):
                self._evict(session_id, reason="shutdown")

    def _sweep_loop(self) -> None:
        interval = self.config.effective_sweep_interval
        while not self._stop.wait(interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Session sweep failed")
