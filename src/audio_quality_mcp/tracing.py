"""MLflow tracing for tool calls, active only when configured.

``mlflow-tracing`` is an optional extra. When it is missing, or
``MLFLOW_TRACKING_URI`` is empty, or ``AUDIO_QUALITY_TRACING_ENABLED=false``,
``trace()`` leaves functions untouched and ``setup()``/``shutdown()`` do nothing.
When active, each decorated tool produces a ``TOOL`` span in the
``MLFLOW_EXPERIMENT_NAME`` experiment (default ``audio-quality-mcp``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

try:
    import mlflow

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False


def is_enabled() -> bool:
    """True when mlflow is importable and the config turns tracing on."""
    if not _HAS_MLFLOW:
        return False
    from .config import get_config

    return get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """Apply ``mlflow.trace`` when tracing is on; otherwise return *func* unchanged.

    Usage::

        @trace(name="audio_batch_analyze", span_type="TOOL")
        async def audio_batch_analyze(...): ...
    """
    if not is_enabled():
        return func if func is not None else (lambda f: f)
    return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)


def setup() -> None:
    """Point MLflow at the configured tracking server and experiment.

    No-op when tracing is disabled. Failures are logged, never raised.
    """
    if not is_enabled():
        return

    from .config import get_config

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        logger.info(
            "MLflow tracing enabled (uri=%s, experiment=%s)",
            cfg.mlflow_tracking_uri, cfg.mlflow_experiment_name,
        )
    except Exception:
        logger.warning("MLflow tracing setup failed: continuing without tracing", exc_info=True)


def shutdown() -> None:
    """Flush pending async traces. No-op when tracing is disabled."""
    if not is_enabled():
        return

    try:
        mlflow.flush_trace_async_logging()
        logger.info("MLflow traces flushed")
    except Exception:
        logger.warning("MLflow trace flush failed", exc_info=True)
