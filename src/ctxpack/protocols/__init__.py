"""Protocol definitions for extensible components."""

from ctxpack.protocols.chunker import ChunkingStrategy
from ctxpack.protocols.ingester import Ingester

__all__ = ["Ingester", "ChunkingStrategy"]
