"""Audio file resolution: directory scans or explicit path lists, WAV only."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import get_config

logger = logging.getLogger(__name__)

SUPPORTED_AUDIO_EXTENSIONS: frozenset[str] = frozenset({".wav"})


def resolve_path(path_value: str) -> Path:
    """Expand ``~`` and return the absolute path; raise PermissionError outside LOCAL_FILE_ACCESS_ROOT."""
    path = Path(path_value).expanduser().resolve()
    root_value = get_config().local_file_access_root
    if root_value:
        root = Path(root_value).expanduser().resolve()
        if not path.is_relative_to(root):
            raise PermissionError(
                f"Path '{path}' is outside LOCAL_FILE_ACCESS_ROOT '{root}'"
            )
    return path


@dataclass
class ResolvedFiles:
    """Accepted audio paths plus the names of files that were skipped."""

    files: list[Path] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


def is_supported_audio(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_AUDIO_EXTENSIONS


def require_supported_audio(path: Path) -> Path:
    """Raise ValueError unless *path* has a supported audio extension."""
    if not is_supported_audio(path):
        raise ValueError(
            f"Unsupported audio extension '{path.suffix}' for {path.name}: only .wav files are supported"
        )
    return path


def resolve_audio_files(
    directory: str | None,
    file_paths: list[str] | None,
    glob_pattern: str = "*",
    max_files: int = 50,
) -> ResolvedFiles:
    """Resolve WAV files from a directory scan or an explicit path list.

    Args:
        directory: Directory to scan.
        file_paths: Explicit list of file paths, kept in the given order.
        glob_pattern: Glob filter for directory mode.
        max_files: Maximum number of accepted files.

    Returns:
        ResolvedFiles with accepted paths (sorted in directory mode) and
        rejected file names.

    Raises:
        ValueError: If both or neither sources are provided.
        FileNotFoundError: If the directory or a listed file does not exist.
        PermissionError: If a path is outside LOCAL_FILE_ACCESS_ROOT.
    """
    if directory and file_paths:
        raise ValueError("Provide either directory or file_paths, not both")
    if not directory and not file_paths:
        raise ValueError("Provide either directory or file_paths")

    resolved = ResolvedFiles()
    if directory:
        dir_path = resolve_path(directory)
        if not dir_path.is_dir():
            raise FileNotFoundError(f"Not a directory: {directory}")
        candidates = sorted(f for f in dir_path.glob(glob_pattern) if f.is_file())
    else:
        candidates = []
        for fp in file_paths:  # type: ignore[union-attr]
            p = resolve_path(fp)
            if not p.is_file():
                raise FileNotFoundError(f"File not found: {fp}")
            candidates.append(p)

    for path in candidates:
        if is_supported_audio(path):
            resolved.files.append(path)
        else:
            resolved.rejected.append(path.name)

    if resolved.rejected:
        logger.info(
            "Skipped %d unsupported file(s); only .wav files are supported",
            len(resolved.rejected),
        )
    resolved.files = resolved.files[:max_files]
    return resolved
