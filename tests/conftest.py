"""Shared fixtures."""

import pytest

from ctxpack.config import EngineConfig
from ctxpack.sandbox import ScriptSandbox
from ctxpack.server import ContextService
from ctxpack.sessions import Session, SessionRegistry


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    config = EngineConfig(session_timeout=10, max_sessions=3, max_history=5)
    return SessionRegistry(config, clock=clock)


@pytest.fixture
def session():
    return Session("test-session")


@pytest.fixture
def sandbox():
    return ScriptSandbox(timeout=10, max_output=1000)


@pytest.fixture
def service(sandbox):
    return ContextService(registry=SessionRegistry(EngineConfig()), sandbox=sandbox)


@pytest.fixture
def docs_dir(tmp_path):
    """A small documentation folder: three Markdown files, one text file, one image."""
    (tmp_path / "guide").mkdir()
    (tmp_path / "a.md").write_text("# Alpha\n\nFirst paragraph.\n\nSecond paragraph.\n")
    (tmp_path / "b.md").write_text("Intro line\n\n## Beta section\nbody\n")
    (tmp_path / "guide" / "c.md").write_text("# Gamma\ncontent\n")
    (tmp_path / "release-notes.txt").write_text("Version 1 released.\n")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    (tmp_path / ".hidden.md").write_text("# Hidden\n")
    return tmp_path
