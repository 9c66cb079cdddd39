"""Aggregate statistics over analysis results."""

from __future__ import annotations

from collections.abc import Iterable

from .models.analysis import AnalysisResult, QualitySummary


def summarize_results(results: Iterable[AnalysisResult]) -> QualitySummary:
    """Count verdicts and directions; ``good_percentage`` is 0.0 for no results."""
    items = list(results)
    total = len(items)
    good = sum(1 for r in items if r.prediction == "good")
    forward = sum(1 for r in items if r.direction == "forward")
    return QualitySummary(
        total=total,
        good=good,
        bad=total - good,
        good_percentage=(good / total) * 100 if total else 0.0,
        forward=forward,
        backward=total - forward,
    )
