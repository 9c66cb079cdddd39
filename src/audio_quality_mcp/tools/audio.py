"""Audio quality tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..analyzer import AudioFile, MockAnalyzer, analyze_audio_file
from ..config import get_config
from ..direction import detect_direction
from ..errors import AnalysisFailure, make_tool_error
from ..files import require_supported_audio, resolve_audio_files, resolve_path
from ..models.analysis import (
    AnalysisResult,
    BatchAudioItem,
    BatchAudioResult,
    ProgressEntry,
)
from ..scheduler import BatchRun, process_in_batches
from ..summary import summarize_results
from ..tracing import trace
from ..types import (
    AudioDirectoryPath,
    AudioFileName,
    AudioFilePath,
    AudioPathList,
    Concurrency,
    coerce_json_param,
)

logger = logging.getLogger(__name__)

audio_server = FastMCP("audio")


@audio_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def audio_detect_direction(file_name: AudioFileName) -> dict:
    """Classify a file name as forward or backward playback.

    Args:
        file_name: Audio file name; matching on 'forward'/'backward' is case-insensitive.

    Returns:
        Dict with file_name and direction.
    """
    return {"file_name": file_name, "direction": detect_direction(file_name)}


@audio_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="audio_analyze_file", span_type="TOOL")
async def audio_analyze_file(file_path: AudioFilePath) -> dict:
    """Classify one WAV file as good or bad quality.

    Args:
        file_path: Path to a local WAV file.

    Returns:
        Dict with file_name, direction, prediction and confidence — or error.
    """
    try:
        path = require_supported_audio(resolve_path(file_path))
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        result = await analyze_audio_file(AudioFile.from_path(path))
        return result.model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


def _apply_result(items: list[BatchAudioItem], result: AnalysisResult) -> None:
    """Merge a completed result into the first pending item with the same file name."""
    for item in items:
        if item.processing and item.file_name == result.file_name:
            item.prediction = result.prediction
            item.confidence = result.confidence
            item.direction = result.direction
            item.processing = False
            return


def _apply_failure(items: list[BatchAudioItem], failure: AnalysisFailure) -> None:
    for item in items:
        if item.processing and item.file_name == failure.file_name:
            item.error = str(failure)
            item.processing = False
            return


@audio_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="audio_batch_analyze", span_type="TOOL")
async def audio_batch_analyze(
    directory: AudioDirectoryPath = None,
    file_paths: AudioPathList = None,
    glob_pattern: Annotated[str, Field(
        description="Glob pattern to filter files within the directory"
    )] = "*",
    concurrency: Concurrency = None,
    max_files: Annotated[int | None, Field(
        ge=1, le=500, description="Maximum files to process (defaults to AUDIO_QUALITY_MAX_FILES)",
    )] = None,
    tolerate_failures: Annotated[bool, Field(
        description="Record per-file failures and keep going instead of failing the run",
    )] = False,
) -> dict:
    """Classify every WAV file in a directory or path list, in concurrent groups.

    Files run in groups of ``concurrency``; a group must finish before the
    next one starts. Items come back in input order. ``progress`` lists
    completions in the order they happened.

    By default one failing file fails the run: the result then carries
    ``status="failed"`` and the tool error, every file that failed carries
    its error (``failed`` counts them all), and files that never reported
    stay ``processing``. With ``tolerate_failures`` failing files get a
    per-item error and the run completes.

    Args:
        directory: Directory to scan for WAV files.
        file_paths: Explicit list of WAV file paths.
        glob_pattern: Glob to filter files in directory mode.
        concurrency: Group size / parallel analyses.
        max_files: Maximum number of files to process.
        tolerate_failures: Isolate per-file failures.

    Returns:
        Dict with counts, per-file items, rejected files, progress log and summary.
    """
    file_paths = coerce_json_param(file_paths, list)
    cfg = get_config()
    group_size = concurrency or cfg.default_concurrency

    try:
        resolved = resolve_audio_files(directory, file_paths, glob_pattern, max_files or cfg.max_files)
    except (ValueError, FileNotFoundError, PermissionError) as exc:
        return make_tool_error(exc)

    source = str(directory or "")
    handles = [AudioFile.from_path(p) for p in resolved.files]
    items = [
        BatchAudioItem(file_name=h.name, file_path=h.path, direction=detect_direction(h.name))
        for h in handles
    ]
    progress: list[ProgressEntry] = []
    accumulated: list[AnalysisResult] = []
    total = len(handles)

    def _on_progress(results: list[AnalysisResult], percent: float) -> None:
        accumulated[:] = results
        latest = results[-1]
        _apply_result(items, latest)
        progress.append(ProgressEntry(
            file_name=latest.file_name, completed=len(results), total=total, percent=percent,
        ))
        logger.debug("Progress %.1f%% (%s)", percent, latest.file_name)

    run = BatchRun()
    status = "completed"
    error: dict | None = None
    try:
        await process_in_batches(
            handles,
            _on_progress,
            concurrency=group_size,
            analyzer=MockAnalyzer.from_config(),
            run=run,
            on_error=(lambda failure: _apply_failure(items, failure)) if tolerate_failures else None,
        )
    except AnalysisFailure as exc:
        # Files whose results were dropped or never started stay marked as processing.
        for failure in run.failures:
            _apply_failure(items, failure)
        status = "failed"
        error = make_tool_error(exc)
    except Exception as exc:
        return make_tool_error(exc)

    return BatchAudioResult(
        source=source or ", ".join(file_paths or []),
        status=status,
        total_files=total,
        successful=run.completed,
        failed=len(run.failures),
        concurrency=group_size,
        items=items,
        rejected=resolved.rejected,
        progress=progress,
        summary=summarize_results(accumulated),
        error=error,
    ).model_dump(mode="json")
