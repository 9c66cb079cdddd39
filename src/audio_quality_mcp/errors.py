"""Structured error handling: analysis/training exceptions, categories, tool error model."""

from __future__ import annotations

from enum import Enum

import httpx
from pydantic import BaseModel


class AnalysisFailure(Exception):
    """Raised when one file's analysis could not produce a result."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"Failed to analyze {file_name}")


class TrainingApiError(Exception):
    """Raised when the external training API rejects or garbles a request."""

    def __init__(self, status_code: int | None, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            message = f"Training API error: {detail}"
        else:
            message = f"Training API returned {status_code}: {detail}".rstrip(": ")
        super().__init__(message)


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_UNSUPPORTED = "FILE_UNSUPPORTED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    TRAINING_API_AUTH = "TRAINING_API_AUTH"
    TRAINING_API_QUOTA = "TRAINING_API_QUOTA"
    TRAINING_API_ERROR = "TRAINING_API_ERROR"
    TRAINING_RESPONSE_INVALID = "TRAINING_RESPONSE_INVALID"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def _categorize_training_error(error: TrainingApiError) -> tuple[ErrorCategory, str]:
    status = error.status_code
    if status is None:
        return (
            ErrorCategory.TRAINING_RESPONSE_INVALID,
            "Training API answered with a body that is not a valid training result",
        )
    if status in (401, 403):
        return (
            ErrorCategory.TRAINING_API_AUTH,
            "Training API refused the credentials: check TRAINING_API_KEY",
        )
    if status == 429:
        return (
            ErrorCategory.TRAINING_API_QUOTA,
            "Training API is rate limiting: wait and retry",
        )
    if status >= 500:
        return (
            ErrorCategory.TRAINING_API_ERROR,
            "Training API failed server-side: check the training service logs",
        )
    return (
        ErrorCategory.TRAINING_API_ERROR,
        f"Training API rejected the request (HTTP {status}): check the uploaded files",
    )


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, AnalysisFailure):
        return (
            ErrorCategory.ANALYSIS_FAILED,
            f"Analysis of '{error.file_name}' failed: re-run the batch or drop that file",
        )
    if isinstance(error, TrainingApiError):
        return _categorize_training_error(error)
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out: try again or raise TRAINING_TIMEOUT",
        )
    if isinstance(error, httpx.TransportError):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Cannot reach the training API: check TRAINING_API_URL and connectivity",
        )
    if isinstance(error, PermissionError):
        return (
            ErrorCategory.PERMISSION_DENIED,
            "Path is outside LOCAL_FILE_ACCESS_ROOT: move the files or widen the root",
        )
    if isinstance(error, FileNotFoundError):
        return (
            ErrorCategory.FILE_NOT_FOUND,
            "File not found: check the path",
        )

    s = str(error).lower()
    if "unsupported audio extension" in s:
        return (
            ErrorCategory.FILE_UNSUPPORTED,
            "File extension not supported: only .wav files are accepted",
        )
    if isinstance(error, ValueError):
        return (
            ErrorCategory.INVALID_ARGUMENT,
            "Invalid input parameter: check the tool arguments",
        )

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.TRAINING_API_QUOTA,
        ErrorCategory.NETWORK_ERROR,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
        retry_after_seconds=60 if cat == ErrorCategory.TRAINING_API_QUOTA else None,
    ).model_dump(mode="json")
