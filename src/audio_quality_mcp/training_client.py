"""Client for the external training API.

The API itself (feature extraction, model fitting, persistence) lives
elsewhere. This module only packages labelled WAV files into the multipart
request the ``/train`` endpoint expects and validates what comes back.

Request contract::

    POST {api_url}/train
    Authorization: Bearer <api_key>        (only when a key is configured)
    multipart fields: model_name, good_file_0..N, bad_file_0..M

Response contract: JSON with ``model_name``, ``accuracy``, ``training_time``
and an optional ``feature_importances`` mapping.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import httpx
from pydantic import ValidationError

from .config import get_config
from .errors import TrainingApiError
from .models.training import TrainingReport, TrainingResponse
from .retry import with_retry

logger = logging.getLogger(__name__)

_AUDIO_MIME = "audio/wav"


def build_training_form(
    model_name: str,
    good_files: Sequence[Path],
    bad_files: Sequence[Path],
) -> tuple[dict[str, str], list[tuple[str, tuple[str, bytes, str]]]]:
    """Return the ``(data, files)`` pair for an httpx multipart POST."""
    files: list[tuple[str, tuple[str, bytes, str]]] = []
    for index, path in enumerate(good_files):
        files.append((f"good_file_{index}", (path.name, path.read_bytes(), _AUDIO_MIME)))
    for index, path in enumerate(bad_files):
        files.append((f"bad_file_{index}", (path.name, path.read_bytes(), _AUDIO_MIME)))
    return {"model_name": model_name}, files


def _parse_response(response: httpx.Response) -> TrainingResponse:
    if not response.is_success:
        raise TrainingApiError(response.status_code, response.reason_phrase)
    try:
        return TrainingResponse.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise TrainingApiError(None, "Failed to parse server response") from exc


def _report_lines(result: TrainingResponse) -> list[str]:
    lines = [
        "Training complete!",
        f"Model saved as: {result.model_name}",
        f"Accuracy: {result.accuracy}",
        f"Training time: {result.training_time} seconds",
    ]
    if result.feature_importances:
        lines.append("Feature Importances:")
        lines.extend(f"{feature}: {value}" for feature, value in result.feature_importances.items())
    return lines


async def submit_training(
    model_name: str,
    good_files: Sequence[Path],
    bad_files: Sequence[Path],
    api_url: str | None = None,
    api_key: str | None = None,
) -> TrainingReport:
    """Upload labelled files to the training API and wait for the trained model.

    Args:
        model_name: Name the API stores the model under.
        good_files: WAV files labelled good quality.
        bad_files: WAV files labelled bad quality.
        api_url: Base URL of the API (defaults to TRAINING_API_URL).
        api_key: Bearer token (defaults to TRAINING_API_KEY; omitted when empty).

    Returns:
        TrainingReport with the parsed response and the run log.

    Raises:
        ValueError: If either label set is empty or no API URL is configured.
        TrainingApiError: On a non-2xx status or an unparseable body.
        httpx.TransportError: When the API cannot be reached.
    """
    cfg = get_config()
    if not good_files or not bad_files:
        raise ValueError("Both good and bad audio files are required for training")
    base_url = (api_url if api_url is not None else cfg.training_api_url).strip().rstrip("/")
    if not base_url:
        raise ValueError("A training API URL is required (set TRAINING_API_URL)")
    key = api_key if api_key is not None else cfg.training_api_key

    log = [
        f"Starting training with model name: {model_name}",
        f"Good files: {len(good_files)}",
        f"Bad files: {len(bad_files)}",
        f"API URL: {base_url}",
    ]
    data, files = build_training_form(model_name, good_files, bad_files)
    headers = {"Authorization": f"Bearer {key}"} if key else {}
    endpoint = f"{base_url}/train"

    logger.info(
        "Submitting training job %s to %s (%d good, %d bad)",
        model_name, endpoint, len(good_files), len(bad_files),
    )
    async with httpx.AsyncClient(timeout=cfg.training_timeout) as client:

        async def _post() -> TrainingResponse:
            response = await client.post(endpoint, data=data, files=files, headers=headers)
            return _parse_response(response)

        log.append("Request sent to training API...")
        result = await with_retry(_post)

    log.extend(_report_lines(result))
    logger.info("Training finished: %s (accuracy %s)", result.model_name, result.accuracy)
    return TrainingReport(
        model_name=model_name,
        api_url=base_url,
        good_files=len(good_files),
        bad_files=len(bad_files),
        response=result,
        log=log,
    )
