"""FastMCP sub-servers: audio analysis, training upload, infra."""
