"""CLI entry point for ctxpack."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Literal, Optional, cast

from ctxpack.analysis import describe, get_statistics, suggest_strategy
from ctxpack.chunkers import decompose as decompose_text
from ctxpack.config import (
    CODE_EXECUTION_TIMEOUT,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LINES_PER_CHUNK,
    MAX_SESSIONS,
    SESSION_TIMEOUT,
    EngineConfig,
)
from ctxpack.errors import ContextPackError
from ctxpack.ingesters import get_ingester, load_documents
from ctxpack.models import DecompositionStrategy
from ctxpack.utils.binary import decode_text

logger = logging.getLogger(__name__)


def read_source(source: str) -> str:
    """Text of a file, a documentation folder or .zip, or stdin for ``-``."""
    if source == "-":
        return sys.stdin.read()

    path = Path(source)
    if path.is_file() and path.suffix.lower() != ".zip":
        return decode_text(path.read_bytes())
    if get_ingester(path) is not None:
        return load_documents(path).content

    logger.error(f"Cannot read: {source}")
    logger.error("Supported inputs: text files, folders, .zip files, - for stdin")
    sys.exit(1)


def serve(config: EngineConfig, transport: str = "stdio") -> None:
    """Start the MCP server.

    Args:
        config: Engine settings
        transport: Transport protocol (stdio, sse or streamable-http)
    """
    # Import here to avoid loading MCP unless needed
    from ctxpack.server import ContextService, create_mcp_server

    logger.info(
        f"Serving via {transport} (session timeout {config.session_timeout:g}s, "
        f"max {config.max_sessions} sessions, script timeout {config.execution_timeout:g}s)"
    )
    mcp = create_mcp_server(ContextService(config=config))
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def stats(source: str, as_json: bool = False) -> None:
    """Show statistics, structure and a suggested strategy for a text."""
    text = read_source(source)
    metadata = describe(text)
    statistics = get_statistics(text)
    suggestion = suggest_strategy(text, metadata.structure, statistics)

    if as_json:
        print(
            json.dumps(
                {
                    "source": source,
                    "structure": metadata.structure.value,
                    **statistics.to_dict(),
                    "suggestion": suggestion.to_dict(),
                },
                indent=2,
            )
        )
        return

    print(f"Source: {source}")
    print(f"  Structure: {metadata.structure.value}")
    print(f"")
    print(f"Statistics:")
    for key, value in statistics.to_dict().items():
        print(f"  {key}: {value}")
    print(f"")
    print(f"Suggested strategy: {suggestion.strategy.value}")
    print(f"  {suggestion.reason}")
    for key, value in suggestion.options.items():
        print(f"  {key}: {value}")


def decompose(
    source: str,
    strategy: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: Optional[int] = None,
    lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
    pattern: Optional[str] = None,
    as_json: bool = False,
) -> None:
    """Decompose a text and list its chunks."""
    text = read_source(source)
    chunks = decompose_text(
        text,
        strategy,
        chunk_size=chunk_size,
        overlap=overlap,
        lines_per_chunk=lines_per_chunk,
        pattern=pattern,
    )

    if as_json:
        print(json.dumps([c.to_dict() for c in chunks], indent=2, ensure_ascii=False))
        return

    print(f"{len(chunks)} chunks ({strategy})")
    for chunk in chunks:
        snippet = chunk.content[:60].replace("\n", " ")
        if chunk.length > 60:
            snippet += "..."
        print(f"  [{chunk.index:>4}] {chunk.start_offset:>9}-{chunk.end_offset:<9} {snippet}")


def deck(source: Optional[str] = None) -> None:
    """Launch the Context Deck TUI for trying strategies interactively."""
    from ctxpack.deck import main as deck_main

    deck_main(source)


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="ctxpack",
        description="ctxpack - long-context processing engine for MCP clients",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the MCP server")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    serve_parser.add_argument(
        "--session-timeout",
        type=float,
        default=SESSION_TIMEOUT,
        help=f"Seconds of inactivity before a session is evicted (default: {SESSION_TIMEOUT:g})",
    )
    serve_parser.add_argument(
        "--max-sessions",
        type=int,
        default=MAX_SESSIONS,
        help=f"Maximum live sessions (default: {MAX_SESSIONS})",
    )
    serve_parser.add_argument(
        "--exec-timeout",
        type=float,
        default=CODE_EXECUTION_TIMEOUT,
        help=f"Script execution timeout in seconds (default: {CODE_EXECUTION_TIMEOUT:g})",
    )

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show statistics and a suggested strategy")
    stats_parser.add_argument("source", help="Text file, documentation folder or .zip, or - for stdin")
    stats_parser.add_argument("--json", action="store_true", help="Print JSON")

    # decompose command
    decompose_parser = subparsers.add_parser("decompose", help="Split a text into chunks")
    decompose_parser.add_argument("source", help="Text file, documentation folder or .zip, or - for stdin")
    decompose_parser.add_argument(
        "--strategy",
        choices=[s.value for s in DecompositionStrategy],
        default=DecompositionStrategy.FIXED_SIZE.value,
        help="Decomposition strategy (default: fixed_size)",
    )
    decompose_parser.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    decompose_parser.add_argument("--overlap", type=int, default=None)
    decompose_parser.add_argument("--lines-per-chunk", type=int, default=DEFAULT_LINES_PER_CHUNK)
    decompose_parser.add_argument("--pattern", default=None, help="Split pattern for by_regex")
    decompose_parser.add_argument("--json", action="store_true", help="Print chunks as JSON")

    # deck command
    deck_parser = subparsers.add_parser("deck", help="Launch the Context Deck TUI")
    deck_parser.add_argument("source", nargs="?", help="File or folder to open")

    args = parser.parse_args(argv)

    # stderr keeps the stdio transport clean
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "serve":
            try:
                config = EngineConfig(
                    session_timeout=args.session_timeout,
                    max_sessions=args.max_sessions,
                    execution_timeout=args.exec_timeout,
                )
            except ValueError as e:
                parser.error(str(e))
            serve(config, args.transport)
        elif args.command == "stats":
            stats(args.source, as_json=args.json)
        elif args.command == "decompose":
            decompose(
                args.source,
                args.strategy,
                chunk_size=args.chunk_size,
                overlap=args.overlap,
                lines_per_chunk=args.lines_per_chunk,
                pattern=args.pattern,
                as_json=args.json,
            )
        elif args.command == "deck":
            deck(args.source)
    except ContextPackError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
