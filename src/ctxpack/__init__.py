"""ctxpack - long-context processing engine exposed over MCP."""

__version__ = "0.1.0"
