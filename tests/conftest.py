"""Shared test fixtures for audio-quality-mcp."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from audio_quality_mcp.errors import AnalysisFailure
from audio_quality_mcp.models.analysis import AnalysisResult


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable."""
    import importlib
    import pkgutil

    import audio_quality_mcp.tools as tools_pkg

    modules = []
    for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + "."):
        modules.append(importlib.import_module(info.name))

    for mod in modules:
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls."""
    monkeypatch.setenv("AUDIO_QUALITY_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/audio-quality-mcp/.env."""
    monkeypatch.setattr(
        "audio_quality_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def _instant_analysis(monkeypatch):
    """Zero simulated latency and a fresh config singleton for every test."""
    import audio_quality_mcp.config as cfg_mod

    monkeypatch.setenv("AUDIO_QUALITY_MIN_LATENCY", "0")
    monkeypatch.setenv("AUDIO_QUALITY_MAX_LATENCY", "0")
    monkeypatch.delenv("LOCAL_FILE_ACCESS_ROOT", raising=False)
    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def clean_config():
    """Reset the config singleton between tests."""
    import audio_quality_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


class NamedFile:
    """Minimal file handle; the analyzers only read ``name``."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"NamedFile({self.name!r})"


class ScriptedAnalyzer:
    """Analyzer with per-file delays and failures that records concurrency.

    Args:
        delays: Seconds to wait per file name (default 0).
        fail: File names whose analysis raises.
        fail_with: Exception factory for failing files (default AnalysisFailure).
    """

    def __init__(
        self,
        delays: dict[str, float] | None = None,
        fail: set[str] | None = None,
        fail_with: Any = None,
    ) -> None:
        self.delays = delays or {}
        self.fail = fail or set()
        self.fail_with = fail_with or AnalysisFailure
        self.in_flight = 0
        self.max_in_flight = 0
        self.started: list[str] = []
        self.settled: list[str] = []
        self.events: list[tuple[str, str]] = []

    async def analyze(self, file: Any) -> AnalysisResult:
        self.started.append(file.name)
        self.events.append(("start", file.name))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(file.name, 0))
            if file.name in self.fail:
                raise self.fail_with(file.name)
            return AnalysisResult(
                file_name=file.name, direction="forward", prediction="good", confidence=0.9,
            )
        finally:
            self.in_flight -= 1
            self.settled.append(file.name)
            self.events.append(("end", file.name))


@pytest.fixture()
def wav_dir(tmp_path):
    """Directory with three WAV files and one unsupported file."""
    (tmp_path / "dforward_01.wav").write_bytes(b"RIFF....WAVEfmt ")
    (tmp_path / "dbackward_02.wav").write_bytes(b"RIFF....WAVEfmt ")
    (tmp_path / "clip.wav").write_bytes(b"RIFF....WAVEfmt ")
    (tmp_path / "notes.txt").write_text("not audio")
    return tmp_path
