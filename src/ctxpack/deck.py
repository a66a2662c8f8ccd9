"""Context Deck - a TUI for trying decomposition strategies and searches on a text."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import (
    Button,
    DataTable,
    DirectoryTree,
    Footer,
    Header,
    Input,
    Label,
    Log,
    Rule,
    Select,
    Static,
)

from ctxpack.analysis import describe, get_statistics, search, suggest_strategy
from ctxpack.chunkers import decompose
from ctxpack.errors import ContextPackError
from ctxpack.ingesters import get_ingester, load_documents
from ctxpack.models import Chunk, DecompositionStrategy
from ctxpack.utils.binary import decode_text

MAX_TABLE_ROWS = 2000
MAX_LOGGED_MATCHES = 20


def read_text(source: Path) -> str:
    """Text of a single file, or the aggregate of a folder or .zip."""
    if source.is_file() and source.suffix.lower() != ".zip":
        return decode_text(source.read_bytes())
    if get_ingester(source) is None:
        raise FileNotFoundError(f"Not a file, folder or .zip: {source}")
    return load_documents(source).content


@dataclass(frozen=True)
class DeckStats:
    """What the deck knows about the loaded text and the last decomposition."""

    source: str = ""
    structure: str = "--"
    length: int = 0
    line_count: int = 0
    word_count: int = 0
    suggested: str = "--"
    strategy: str = "--"
    chunk_count: int = 0
    last_run_ms: float = 0.0
    status: str = "idle"


class StatsPanel(Static):
    """Summary of the loaded text."""

    def compose(self) -> ComposeResult:
        yield Static(id="stats-content")

    def on_mount(self) -> None:
        self.update_display(DeckStats())

    def update_display(self, stats: DeckStats) -> None:
        content = self.query_one("#stats-content", Static)
        status_color = {
            "idle": "dim",
            "loading": "yellow",
            "ready": "green",
            "working": "yellow",
            "error": "red",
        }.get(stats.status, "white")
        source = stats.source if len(stats.source) < 28 else "..." + stats.source[-25:]

        content.update(f"""[b]STATUS[/b]  [{status_color}]{stats.status.upper()}[/]
[dim]{source or "no source"}[/]

[b]TEXT[/b]
  Structure   [cyan]{stats.structure}[/]
  Length      [cyan]{stats.length:,}[/]
  Lines       [blue]{stats.line_count:,}[/]
  Words       [blue]{stats.word_count:,}[/]

[b]STRATEGY[/b]
  Suggested   [magenta]{stats.suggested}[/]
  Last run    [magenta]{stats.strategy}[/]
  Chunks      [green]{stats.chunk_count:,}[/]
  Time        [yellow]{stats.last_run_ms:.1f} ms[/]""")


class ChunkTable(DataTable):
    """Chunks of the last decomposition."""

    def on_mount(self) -> None:
        self.add_columns("#", "Start", "End", "Length", "Preview")
        self.cursor_type = "row"

    def show_chunks(self, chunks: list[Chunk]) -> None:
        self.clear()
        for chunk in chunks[:MAX_TABLE_ROWS]:
            preview = chunk.content[:60].replace("\n", " ")
            if chunk.length > 60:
                preview += "..."
            self.add_row(
                str(chunk.index),
                f"{chunk.start_offset:,}",
                f"{chunk.end_offset:,}",
                f"{chunk.length:,}",
                preview,
            )


class ContextDeck(App):
    """The ctxpack Context Deck."""

    # Messages for thread-safe communication
    class StatsUpdated(Message):
        def __init__(self, stats: DeckStats) -> None:
            self.stats = stats
            super().__init__()

    class LogMessage(Message):
        def __init__(self, message: str) -> None:
            self.message = message
            super().__init__()

    class ChunksReady(Message):
        def __init__(self, chunks: list[Chunk]) -> None:
            self.chunks = chunks
            super().__init__()

    CSS = """
    #deck {
        layout: horizontal;
    }

    #controls {
        width: 40;
        padding: 0 1;
        border-right: tall $accent;
    }

    #results {
        padding: 0 1;
    }

    #browser {
        width: 32;
        padding: 0 1;
        border-left: tall $accent;
    }

    StatsPanel {
        height: auto;
        border: round $accent;
        padding: 0 1;
    }

    #deck-actions {
        height: auto;
        margin: 1 0;
    }

    #deck-actions Button {
        width: 1fr;
    }

    ChunkTable {
        height: 2fr;
    }

    #activity {
        height: 1fr;
        border: round $secondary;
    }

    .heading {
        color: $accent;
        text-style: bold underline;
    }
    """

    BINDINGS = [
        Binding("l", "load", "Load", show=True),
        Binding("r", "decompose", "Decompose", show=True),
        Binding("q", "quit", "Quit", show=True),
    ]

    TITLE = "ctxpack Context Deck"
    SUB_TITLE = "Decomposition Console"

    def __init__(self, source: str | None = None) -> None:
        super().__init__()
        self.initial_source = source
        self.text = ""
        self.stats = DeckStats()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container(id="deck"):
            with Vertical(id="controls"):
                yield Label("CONTEXT", classes="heading")
                yield StatsPanel()
                yield Label("Source Path")
                yield Input(placeholder="File, folder or .zip path...", id="source-input")
                yield Label("Strategy")
                yield Select(
                    [(s.value, s.value) for s in DecompositionStrategy],
                    value=DecompositionStrategy.FIXED_SIZE.value,
                    allow_blank=False,
                    id="strategy-select",
                )
                with Horizontal(id="deck-actions"):
                    yield Button("LOAD", id="load-btn", variant="primary")
                    yield Button("DECOMPOSE", id="decompose-btn", variant="success")
                yield Rule()
                yield Label("Search (regex)")
                yield Input(placeholder="Pattern, Enter to search...", id="search-input")

            with Vertical(id="results"):
                yield Label("CHUNKS", classes="heading")
                yield ChunkTable(id="chunk-table")
                yield Rule()
                yield Label("LOG", classes="heading")
                yield Log(id="activity", highlight=True, auto_scroll=True)

            with Vertical(id="browser"):
                yield Label("FILE BROWSER", classes="heading")
                yield DirectoryTree(Path.cwd(), id="dir-tree")

        yield Footer()

    def on_mount(self) -> None:
        self._log("Context Deck ready")
        if self.initial_source:
            self.query_one("#source-input", Input).value = self.initial_source
            self.action_load()
        else:
            self._log("Pick a file or folder and press LOAD")

    def _log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.query_one("#activity", Log).write_line(f"[{timestamp}] {message}")

    def _publish(self, **changes) -> None:
        self.stats = replace(self.stats, **changes)
        self.post_message(self.StatsUpdated(self.stats))

    # Message handlers for thread-safe updates
    def on_context_deck_stats_updated(self, event: StatsUpdated) -> None:
        self.query_one(StatsPanel).update_display(event.stats)

    def on_context_deck_log_message(self, event: LogMessage) -> None:
        self._log(event.message)

    def on_context_deck_chunks_ready(self, event: ChunksReady) -> None:
        self.query_one("#chunk-table", ChunkTable).show_chunks(event.chunks)

    def on_directory_tree_file_selected(self, event: DirectoryTree.FileSelected) -> None:
        self.query_one("#source-input", Input).value = str(event.path)

    def on_directory_tree_directory_selected(self, event: DirectoryTree.DirectorySelected) -> None:
        self.query_one("#source-input", Input).value = str(event.path)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "load-btn":
            self.action_load()
        elif event.button.id == "decompose-btn":
            self.action_decompose()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search-input":
            pattern = event.value.strip()
            if pattern:
                self.run_search(pattern)
        elif event.input.id == "source-input":
            self.action_load()

    def action_load(self) -> None:
        source = self.query_one("#source-input", Input).value.strip()
        if not source:
            self._log("ERROR: No source path specified")
            return
        self.run_load(source)

    def action_decompose(self) -> None:
        if not self.text:
            self._log("ERROR: Load a source first")
            return
        strategy = self.query_one("#strategy-select", Select).value
        self.run_decompose(str(strategy))

    @work(exclusive=True, thread=True)
    def run_load(self, source: str) -> None:
        """Read and analyse a source in a background thread."""
        self._publish(source=source, status="loading")
        try:
            text = read_text(Path(source).expanduser())
        except (OSError, ContextPackError) as e:
            self._publish(status="error")
            self.post_message(self.LogMessage(f"ERROR: {e}"))
            return

        metadata = describe(text)
        suggestion = suggest_strategy(text, metadata.structure, get_statistics(text))
        self.text = text
        self._publish(
            structure=metadata.structure.value,
            length=metadata.length,
            line_count=metadata.line_count,
            word_count=metadata.word_count,
            suggested=suggestion.strategy.value,
            strategy="--",
            chunk_count=0,
            status="ready",
        )
        self.post_message(self.ChunksReady([]))
        self.post_message(self.LogMessage(f"Loaded {source}: {metadata.length:,} chars, {metadata.structure.value}"))
        self.post_message(self.LogMessage(f"Suggestion: {suggestion.strategy.value} ({suggestion.reason})"))

    @work(exclusive=True, thread=True)
    def run_decompose(self, strategy: str) -> None:
        """Decompose the loaded text in a background thread."""
        self._publish(status="working")
        started = time.perf_counter()
        try:
            chunks = decompose(self.text, strategy)
        except ContextPackError as e:
            self._publish(status="error")
            self.post_message(self.LogMessage(f"ERROR: {e}"))
            return
        elapsed_ms = (time.perf_counter() - started) * 1000

        self._publish(strategy=strategy, chunk_count=len(chunks), last_run_ms=elapsed_ms, status="ready")
        self.post_message(self.ChunksReady(chunks))
        shown = f" (showing {MAX_TABLE_ROWS})" if len(chunks) > MAX_TABLE_ROWS else ""
        self.post_message(self.LogMessage(f"{strategy}: {len(chunks)} chunks in {elapsed_ms:.1f} ms{shown}"))

    @work(exclusive=True, thread=True, group="search")
    def run_search(self, pattern: str) -> None:
        if not self.text:
            self.post_message(self.LogMessage("ERROR: Load a source first"))
            return
        try:
            matches = search(self.text, pattern, context_chars=30, max_results=MAX_LOGGED_MATCHES)
        except ContextPackError as e:
            self.post_message(self.LogMessage(f"ERROR: {e}"))
            return

        self.post_message(self.LogMessage(f"/{pattern}/: {len(matches)} matches"))
        for match in matches:
            snippet = match.context.replace("\n", " ")
            self.post_message(self.LogMessage(f"  line {match.line_number} @{match.index}: {snippet}"))


def main(source: str | None = None) -> None:
    """Run the Context Deck TUI."""
    app = ContextDeck(source)
    app.run()


if __name__ == "__main__":
    main()
