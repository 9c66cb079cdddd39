"""Training API models: response contract of the external ``/train`` endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TrainingResponse(BaseModel):
    """JSON body returned by ``POST {api_url}/train`` on success."""

    model_name: str
    accuracy: float
    training_time: float
    feature_importances: dict[str, float] | None = None


class TrainingReport(BaseModel):
    """Output schema for training_submit.

    Carries the parsed response together with the run log lines, in the
    order a user would read them while the upload and training progress.
    """

    model_name: str
    api_url: str
    good_files: int
    bad_files: int
    response: TrainingResponse
    log: list[str] = Field(default_factory=list)
