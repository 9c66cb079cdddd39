"""Infrastructure tools — 1 tool on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import _normalize_training_url, get_config, update_config
from ..errors import make_tool_error
from ..tracing import trace
from ..types import Concurrency

infra_server = FastMCP("infra")
_SENSITIVE_CONFIG_FIELDS = {"training_api_key"}


def _redacted_config() -> dict:
    """Return runtime config with secret-bearing fields removed."""
    return get_config().model_dump(exclude=_SENSITIVE_CONFIG_FIELDS)


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_configure", span_type="TOOL")
async def infra_configure(
    concurrency: Concurrency = None,
    min_latency: Annotated[float | None, Field(
        ge=0.0, description="Lower bound of the simulated per-file latency, seconds",
    )] = None,
    max_latency: Annotated[float | None, Field(
        ge=0.0, description="Upper bound of the simulated per-file latency, seconds",
    )] = None,
    training_api_url: Annotated[str | None, Field(
        description="Base URL of the external training API",
    )] = None,
) -> dict:
    """Reconfigure the server at runtime — batch concurrency, simulated latency, training API.

    Changes take effect immediately for all subsequent tool calls.

    Args:
        concurrency: Default group size for batch analysis.
        min_latency: Lower bound of the simulated analysis delay.
        max_latency: Upper bound of the simulated analysis delay.
        training_api_url: Training API base URL; bare hosts get a scheme.

    Returns:
        Dict with current_config (API key redacted).
    """
    try:
        overrides: dict[str, object] = {
            "default_concurrency": concurrency,
            "min_latency": min_latency,
            "max_latency": max_latency,
        }
        if training_api_url is not None:
            normalized = _normalize_training_url(training_api_url)
            if not normalized:
                raise ValueError(f"Invalid training API URL '{training_api_url}'")
            overrides["training_api_url"] = normalized

        if any(v is not None for v in overrides.values()):
            update_config(**overrides)
        return {"current_config": _redacted_config()}
    except Exception as exc:
        return make_tool_error(exc)
