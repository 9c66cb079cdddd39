"""Tool parameter aliases and argument helpers shared by the sub-servers."""

from __future__ import annotations

import json
from typing import Annotated

from pydantic import Field


def coerce_json_param(value: str | dict | list | None, expected_type: type) -> dict | list | None:
    """Undo JSON-string encoding of a list/dict argument.

    Some MCP clients send ``file_paths=["a.wav"]`` as the string
    ``'["a.wav"]'``. When *value* is such a string and decodes to
    *expected_type*, the decoded value is returned; anything else comes
    back unchanged for pydantic to judge.
    """
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return value
        if isinstance(decoded, expected_type):
            return decoded
    return value


# Annotated aliases

AudioFileName = Annotated[str, Field(description="Audio file name, e.g. 'dforward_01.wav'")]
AudioFilePath = Annotated[str, Field(min_length=1, description="Path to a local WAV file")]
AudioDirectoryPath = Annotated[str | None, Field(
    description="Directory to scan for WAV files",
)]
AudioPathList = Annotated[list[str] | None, Field(
    description="Explicit list of WAV file paths, analyzed in the given order",
)]
Concurrency = Annotated[int | None, Field(
    ge=1, le=16,
    description="Files analyzed simultaneously per group (defaults to AUDIO_QUALITY_CONCURRENCY)",
)]
ModelName = Annotated[str, Field(
    min_length=1, max_length=200, description="Name the training API stores the model under",
)]
