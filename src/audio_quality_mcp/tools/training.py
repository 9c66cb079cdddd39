"""Training upload tool — 1 tool on a FastMCP sub-server."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error
from ..files import require_supported_audio, resolve_path
from ..tracing import trace
from ..training_client import submit_training
from ..types import ModelName, coerce_json_param

training_server = FastMCP("training")


def _resolve_labelled(paths: list[str] | None) -> list[Path]:
    resolved: list[Path] = []
    for fp in paths or []:
        p = require_supported_audio(resolve_path(fp))
        if not p.is_file():
            raise FileNotFoundError(f"File not found: {fp}")
        resolved.append(p)
    return resolved


@training_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="training_submit", span_type="TOOL")
async def training_submit(
    model_name: ModelName = "fingerprint_model",
    good_paths: Annotated[list[str] | None, Field(
        description="WAV files labelled good quality",
    )] = None,
    bad_paths: Annotated[list[str] | None, Field(
        description="WAV files labelled bad quality",
    )] = None,
    api_url: Annotated[str | None, Field(
        description="Training API base URL (defaults to TRAINING_API_URL)",
    )] = None,
    api_key: Annotated[str | None, Field(
        description="Bearer token for the training API (defaults to TRAINING_API_KEY)",
    )] = None,
) -> dict:
    """Upload labelled WAV files to the external training API and wait for the model.

    Args:
        model_name: Name the API stores the trained model under.
        good_paths: Paths of good-quality WAV files.
        bad_paths: Paths of bad-quality WAV files.
        api_url: Training API base URL override.
        api_key: Bearer token override.

    Returns:
        Dict with model name, file counts, the API response and a run log — or error.
    """
    good_paths = coerce_json_param(good_paths, list)
    bad_paths = coerce_json_param(bad_paths, list)
    try:
        report = await submit_training(
            model_name,
            _resolve_labelled(good_paths),
            _resolve_labelled(bad_paths),
            api_url=api_url,
            api_key=api_key,
        )
        return report.model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)
