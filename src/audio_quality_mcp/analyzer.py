"""Per-file audio analysis: pluggable analyzer interface and the simulated backend.

The batch scheduler only depends on :class:`AudioAnalyzer`. The shipped
implementation, :class:`MockAnalyzer`, stands in for a real inference
backend: the quality verdict is a deterministic function of the file name
and the only asynchronous work is a simulated latency.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .config import get_config
from .direction import detect_direction
from .errors import AnalysisFailure
from .models.analysis import AnalysisResult

logger = logging.getLogger(__name__)


class FileHandle(Protocol):
    """Anything with a name: the only attribute the analyzers read."""

    name: str


@dataclass(frozen=True)
class AudioFile:
    """A named audio file on disk."""

    name: str
    path: str = ""
    size: int = 0

    @classmethod
    def from_path(cls, path: Path | str) -> AudioFile:
        p = Path(path)
        size = p.stat().st_size if p.is_file() else 0
        return cls(name=p.name, path=str(p), size=size)


class AudioAnalyzer(Protocol):
    """Capability interface: turn one file handle into an AnalysisResult."""

    async def analyze(self, file: FileHandle) -> AnalysisResult: ...


def simulated_score(file_name: str) -> float:
    """Return a stable pseudo-random value in [0, 1] derived from *file_name*.

    Sums the UTF-16 code units of the name and maps ``sin`` of that sum
    onto the unit interval. Lone surrogates (undecodable bytes in POSIX
    file names) count as single code units.
    """
    encoded = file_name.encode("utf-16-le", "surrogatepass")
    hash_code = sum(
        int.from_bytes(encoded[i:i + 2], "little") for i in range(0, len(encoded), 2)
    )
    return math.sin(hash_code) * 0.5 + 0.5


class MockAnalyzer:
    """Simulated inference backend.

    Args:
        min_latency: Lower bound of the simulated processing delay, seconds.
        max_latency: Upper bound of the simulated processing delay, seconds.
        rng: Random source for latency draws. Only the latency is random;
            prediction and confidence depend on the file name alone.
    """

    def __init__(
        self,
        min_latency: float = 1.0,
        max_latency: float = 3.0,
        rng: random.Random | None = None,
    ) -> None:
        if min_latency < 0 or max_latency < min_latency:
            raise ValueError(
                f"Invalid latency range [{min_latency}, {max_latency}]"
            )
        self.min_latency = min_latency
        self.max_latency = max_latency
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls) -> MockAnalyzer:
        cfg = get_config()
        return cls(min_latency=cfg.min_latency, max_latency=cfg.max_latency)

    def draw_latency(self) -> float:
        return self._rng.uniform(self.min_latency, self.max_latency)

    async def analyze(self, file: FileHandle) -> AnalysisResult:
        direction = detect_direction(file.name)
        latency = self.draw_latency()
        await asyncio.sleep(latency)

        try:
            r = simulated_score(file.name)
        except Exception as exc:
            raise AnalysisFailure(file.name) from exc

        prediction = "good" if r > 0.5 else "bad"
        confidence = 0.7 + r * 0.3
        logger.debug(
            "Analyzed %s in %.2fs: %s (%.3f)", file.name, latency, prediction, confidence,
        )
        return AnalysisResult(
            file_name=file.name,
            direction=direction,
            prediction=prediction,
            confidence=confidence,
        )


async def analyze_audio_file(
    file: FileHandle, analyzer: AudioAnalyzer | None = None,
) -> AnalysisResult:
    """Analyze a single file with *analyzer* (config-driven MockAnalyzer by default)."""
    backend = analyzer or MockAnalyzer.from_config()
    return await backend.analyze(file)
