"""Playback direction detection from audio file names."""

from __future__ import annotations

from .models.analysis import Direction

_BACKWARD_MARKERS = ("backward", "dbackward")
_FORWARD_MARKERS = ("forward", "dforward")


def detect_direction(file_name: str) -> Direction:
    """Classify a file name as ``"forward"`` or ``"backward"``.

    Matching is case-insensitive. Names carrying neither marker default to
    ``"forward"``; names carrying both are ``"backward"``.
    """
    lower = file_name.lower()
    if any(marker in lower for marker in _BACKWARD_MARKERS):
        return "backward"
    if any(marker in lower for marker in _FORWARD_MARKERS):
        return "forward"
    return "forward"
