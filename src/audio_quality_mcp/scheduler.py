"""Batch scheduler: group-barrier concurrency over a file list with live progress.

Files are split into consecutive groups of ``concurrency`` items. Each group
runs concurrently on the event loop and must fully settle before the next
group starts, so no more than ``concurrency`` analyses are ever in flight.
Every successful analysis appends to a shared result list and emits one
progress notification. Results are in completion order; callers match on
``file_name`` when they need input order.

The first failing analysis fails the whole run: siblings in the same group
still settle, but nothing they produce is recorded, and later groups never
start. Passing ``on_error`` opts into per-file isolation instead.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from .analyzer import AudioAnalyzer, FileHandle, MockAnalyzer
from .errors import AnalysisFailure
from .models.analysis import AnalysisResult, BatchProgress

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[list[AnalysisResult], float], Awaitable[None] | None]
ErrorCallback = Callable[[AnalysisFailure], Awaitable[None] | None]


class RunState(str, Enum):
    """Batch run lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BatchRun:
    """Observable state of one batch run.

    ``group_index`` is zero-based and names the last group that was started.
    ``isolated`` holds failures that an ``on_error`` handler absorbed; they
    count as settled but never as completed. ``failures`` lists every file
    that failed, including siblings that settled after the failure that
    ended the run.
    """

    state: RunState = RunState.IDLE
    total: int = 0
    completed: int = 0
    group_index: int = -1
    group_count: int = 0
    error: BaseException | None = None
    isolated: list[AnalysisFailure] = field(default_factory=list)
    failures: list[AnalysisFailure] = field(default_factory=list)

    @property
    def settled(self) -> int:
        return self.completed + len(self.isolated)

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0 if self.state is RunState.COMPLETED else 0.0
        return 100 * self.settled / self.total

    def fail(self, error: BaseException) -> None:
        """Record the first failure; later ones are ignored."""
        if self.state is RunState.FAILED:
            return
        self.state = RunState.FAILED
        self.error = error


def partition(files: Sequence[T], size: int) -> list[list[T]]:
    """Split *files* into consecutive groups of *size* (last may be shorter)."""
    if size < 1:
        raise ValueError(f"Group size must be >= 1, got {size}")
    return [list(files[i:i + size]) for i in range(0, len(files), size)]


def _file_name(file: FileHandle) -> str:
    return getattr(file, "name", str(file))


async def _maybe_await(outcome: object) -> None:
    if inspect.isawaitable(outcome):
        await outcome


async def process_in_batches(
    files: Sequence[FileHandle],
    on_progress: ProgressCallback | None,
    concurrency: int = 3,
    analyzer: AudioAnalyzer | None = None,
    run: BatchRun | None = None,
    on_error: ErrorCallback | None = None,
) -> list[AnalysisResult]:
    """Analyze *files* in groups of *concurrency*, reporting progress per file.

    Args:
        files: File handles, in submission order.
        on_progress: Called as ``on_progress(results_so_far, percent)`` once
            per successful analysis. May be a coroutine function. Receives a
            copy of the accumulated list.
        concurrency: Group size and ceiling on in-flight analyses.
        analyzer: Analysis backend (config-driven MockAnalyzer by default).
        run: Optional BatchRun to observe the run's state machine.
        on_error: Opt-in isolation. When given, a failing file is handed to
            it and the run carries on; ``percent`` then counts failed files
            as settled. Without it the first failure fails the run.

    Returns:
        All successful results, in completion order.

    Raises:
        ValueError: If concurrency is below 1.
        AnalysisFailure: On the first failing file when ``on_error`` is not
            set; the run stops after that file's group settles.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    items = list(files)
    backend = analyzer or MockAnalyzer.from_config()
    run = run if run is not None else BatchRun()
    groups = partition(items, concurrency)

    run.state = RunState.RUNNING
    run.total = len(items)
    run.completed = 0
    run.error = None
    run.isolated = []
    run.failures = []
    run.group_index = -1
    run.group_count = len(groups)
    results: list[AnalysisResult] = []

    async def _analyze_one(file: FileHandle) -> None:
        try:
            result = await backend.analyze(file)
        except Exception as exc:
            failure = exc if isinstance(exc, AnalysisFailure) else AnalysisFailure(_file_name(file))
            if failure is not exc:
                failure.__cause__ = exc
            logger.warning("Analysis failed for %s: %s", _file_name(file), exc)
            run.failures.append(failure)
            if on_error is None:
                run.fail(failure)
                return
            run.isolated.append(failure)
            await _maybe_await(on_error(failure))
            return

        if run.state is RunState.FAILED:
            logger.debug("Dropping result for %s after batch failure", result.file_name)
            return

        results.append(result)
        run.completed += 1
        if on_progress is not None:
            try:
                await _maybe_await(on_progress(list(results), run.percent))
            except Exception as exc:
                logger.warning("Progress callback failed for %s: %s", result.file_name, exc)
                run.fail(exc)
                raise

    logger.info(
        "Batch started: %d file(s) in %d group(s) of up to %d",
        len(items), len(groups), concurrency,
    )
    for index, group in enumerate(groups):
        run.group_index = index
        logger.debug("Group %d/%d: %s", index + 1, len(groups), [_file_name(f) for f in group])

        outcomes = await asyncio.gather(
            *[_analyze_one(f) for f in group], return_exceptions=True,
        )

        if run.error is None:
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    run.fail(outcome)
                    break
        if run.error is not None:
            logger.warning(
                "Batch failed in group %d/%d after %d/%d file(s)",
                index + 1, len(groups), run.completed, run.total,
            )
            raise run.error

    run.state = RunState.COMPLETED
    logger.info("Batch completed: %d result(s)", len(results))
    return results


async def iter_progress(
    files: Sequence[FileHandle],
    concurrency: int = 3,
    analyzer: AudioAnalyzer | None = None,
) -> AsyncIterator[BatchProgress]:
    """Stream form of :func:`process_in_batches`: one BatchProgress per completed file.

    A failed run raises its AnalysisFailure after every progress event that
    was emitted before the failure has been yielded.
    """
    items = list(files)
    total = len(items)
    queue: asyncio.Queue[BatchProgress | None] = asyncio.Queue()

    def _push(results: list[AnalysisResult], percent: float) -> None:
        queue.put_nowait(
            BatchProgress(results=results, percent=percent, completed=len(results), total=total)
        )

    task = asyncio.create_task(process_in_batches(items, _push, concurrency, analyzer))
    task.add_done_callback(lambda _: queue.put_nowait(None))
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            yield event
        await task
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
