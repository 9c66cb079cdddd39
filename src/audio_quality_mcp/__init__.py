"""Audio quality classification MCP server with batched, bounded-concurrency analysis."""

__version__ = "0.1.0"
