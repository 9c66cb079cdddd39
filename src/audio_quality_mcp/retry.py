"""Backoff for transient training API failures (rate limits, gateway errors, timeouts)."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from .config import ServerConfig, get_config
from .errors import TrainingApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_STATUS: frozenset[int] = frozenset({429, 502, 503, 504})


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, TrainingApiError):
        return exc.status_code in _RETRYABLE_STATUS
    return isinstance(exc, (httpx.TimeoutException, TimeoutError))


def _backoff_delay(cfg: ServerConfig, failures: int) -> float:
    """Seconds to wait after the *failures*-th failed attempt, jittered and capped."""
    return min(cfg.retry_base_delay * 2 ** (failures - 1) + random.random(), cfg.retry_max_delay)


async def with_retry(coro_factory: Callable[[], Awaitable[T]]) -> T:
    """Await ``coro_factory()`` until it succeeds or a non-transient error occurs.

    Attempts and delays come from the ``AUDIO_QUALITY_RETRY_*`` settings.
    The factory is called once per attempt so each try gets a fresh request.

    Raises:
        The last error once attempts run out, or the first non-retryable one.
    """
    cfg = get_config()
    failures = 0
    while True:
        try:
            return await coro_factory()
        except Exception as exc:
            failures += 1
            if failures >= cfg.retry_max_attempts or not _is_retryable(exc):
                raise
            delay = _backoff_delay(cfg, failures)
            logger.warning(
                "Training API attempt %d/%d failed (%s); retrying in %.1fs",
                failures, cfg.retry_max_attempts, exc, delay,
            )
            await asyncio.sleep(delay)
