"""Audio analysis models: per-file results, progress snapshots and batch output.

AnalysisResult is the unit the batch scheduler accumulates. BatchAudioResult
is what ``audio_batch_analyze`` returns: the per-file items in input order,
the progress log recorded while the run was live, and a summary.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Direction = Literal["forward", "backward"]
Prediction = Literal["good", "bad"]
BatchStatus = Literal["completed", "failed"]


class AnalysisResult(BaseModel):
    """Outcome of analyzing one audio file. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    direction: Direction
    prediction: Prediction
    confidence: float = Field(ge=0.0, le=1.0)


class BatchProgress(BaseModel):
    """Snapshot emitted after every completed file in a batch run."""

    results: list[AnalysisResult] = Field(default_factory=list)
    percent: float = Field(ge=0.0, le=100.0)
    completed: int
    total: int


class ProgressEntry(BaseModel):
    """One line of the progress log: which file finished and where the run stood."""

    file_name: str
    completed: int
    total: int
    percent: float


class QualitySummary(BaseModel):
    """Aggregate counts over completed results."""

    total: int = 0
    good: int = 0
    bad: int = 0
    good_percentage: float = 0.0
    forward: int = 0
    backward: int = 0


class BatchAudioItem(BaseModel):
    """State of a single file in a batch analysis.

    ``processing`` stays True for files whose analysis never settled
    (e.g. siblings of a failed file, or files in groups that never started).
    """

    file_name: str
    file_path: str = ""
    direction: Direction
    prediction: Prediction | None = None
    confidence: float | None = None
    processing: bool = True
    error: str = ""


class BatchAudioResult(BaseModel):
    """Output schema for audio_batch_analyze."""

    source: str
    status: BatchStatus = "completed"
    total_files: int
    successful: int
    failed: int
    concurrency: int
    items: list[BatchAudioItem] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    progress: list[ProgressEntry] = Field(default_factory=list)
    summary: QualitySummary = Field(default_factory=QualitySummary)
    error: dict | None = None
