"""Fill unset environment variables from ``~/.config/audio-quality-mcp/.env``.

MCP hosts are often configured per project; keeping the training API URL and
key in one shared file means they do not have to be repeated for every host.
Variables already present in the process environment always win.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "audio-quality-mcp" / ".env"

_QUOTES = ('"', "'")


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def _split_assignment(line: str) -> tuple[str, str] | None:
    """Return ``(key, value)`` for one ``.env`` line, or None when it holds no assignment."""
    line = line.strip()
    if line.startswith("#"):
        return None
    line = line.removeprefix("export ").lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, _unquote(value.strip())


def _is_unset_or_placeholder(key: str, value: str | None) -> bool:
    """True when *value* is missing, blank, or an unexpanded reference to *key* itself.

    Hosts that cannot resolve ``${TRAINING_API_KEY}`` sometimes pass the
    literal text through; those values count as unset.
    """
    if value is None:
        return True
    current = _unquote(value.strip()).strip()
    if not current:
        return True
    self_refs = (f"${key}", f"${{{key}}}")
    return current in self_refs or (current.startswith(f"${{{key}:-") and current.endswith("}"))


def parse_dotenv(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` pairs from *path*.

    Handles quoting, an ``export`` prefix and ``#`` comments; values are
    not expanded. A missing file yields an empty dict.
    """
    if not path.is_file():
        return {}
    pairs = (_split_assignment(raw) for raw in path.read_text().splitlines())
    return dict(pair for pair in pairs if pair is not None)


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy variables from *path* into ``os.environ`` where they are unset.

    Args:
        path: The ``.env`` file; :data:`DEFAULT_ENV_PATH` when omitted.

    Returns:
        The variables that were injected.
    """
    source = DEFAULT_ENV_PATH if path is None else path
    injected = {
        key: value
        for key, value in parse_dotenv(source).items()
        if _is_unset_or_placeholder(key, os.environ.get(key))
    }
    os.environ.update(injected)
    return injected
