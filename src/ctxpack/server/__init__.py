"""Tool operations and their MCP transport."""

from ctxpack.server.mcp_server import create_mcp_server
from ctxpack.server.service import ContextService

__all__ = ["ContextService", "create_mcp_server"]
