"""Runtime settings for the audio quality server, read from environment variables."""

from __future__ import annotations

import logging
import os
import re
from ipaddress import ip_address
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_TRAINING_API_URL = "http://localhost:8000"

_PLACEHOLDER_RE = re.compile(r"\$(\w+|\{\s*\w+\s*(:-[^}]*)?\})")


def _is_env_placeholder(value: str) -> bool:
    """True for shell references the host left unexpanded, e.g. ``${TRAINING_API_URL}``."""
    return _PLACEHOLDER_RE.fullmatch(value) is not None


def _is_private_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        address = ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private


def _normalize_training_url(raw: str) -> str:
    """Clean up a TRAINING_API_URL value; returns "" when it is unusable.

    A bare ``host[:port]`` gets ``http://`` when the host is local or on a
    private network and ``https://`` otherwise. Trailing slashes are removed
    so ``/train`` can be appended.
    """
    value = raw.strip()
    if not value or _is_env_placeholder(value):
        return ""
    if "://" not in value:
        host = (urlparse(f"//{value}").hostname or "").lower()
        if not host:
            return ""
        value = f"{'http' if _is_private_host(host) else 'https'}://{value}"
    value = value.rstrip("/")
    return value if urlparse(value).hostname else ""


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Tracing needs a tracking URI; ``AUDIO_QUALITY_TRACING_ENABLED=false`` vetoes it."""
    return flag_value.strip().lower() != "false" and bool(tracking_uri)


class ServerConfig(BaseModel):
    """Batch, simulated-latency, training API, retry and tracing settings."""

    default_concurrency: int = Field(default=3)
    min_latency: float = Field(default=1.0)
    max_latency: float = Field(default=3.0)
    max_files: int = Field(default=50)
    local_file_access_root: str = Field(default="")
    training_api_url: str = Field(default=DEFAULT_TRAINING_API_URL)
    training_api_key: str = Field(default="")
    training_timeout: int = Field(default=300)
    retry_max_attempts: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="audio-quality-mcp")

    @field_validator("default_concurrency", "max_files", "training_timeout", "retry_max_attempts")
    @classmethod
    def validate_at_least_one(cls, value: int, info) -> int:
        if value < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return value

    @field_validator("min_latency", "max_latency")
    @classmethod
    def validate_latency(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Simulated latency must be >= 0")
        return value

    @field_validator("retry_base_delay", "retry_max_delay")
    @classmethod
    def validate_retry_delays(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Retry delays must be > 0")
        return value

    @model_validator(mode="after")
    def validate_latency_range(self) -> ServerConfig:
        if self.min_latency > self.max_latency:
            raise ValueError(
                f"min_latency ({self.min_latency}) must not exceed max_latency ({self.max_latency})"
            )
        return self

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Read every setting from the process environment."""
        env = os.environ.get
        tracking_uri = env("MLFLOW_TRACKING_URI", "")
        return cls(
            default_concurrency=int(env("AUDIO_QUALITY_CONCURRENCY", "3")),
            min_latency=float(env("AUDIO_QUALITY_MIN_LATENCY", "1.0")),
            max_latency=float(env("AUDIO_QUALITY_MAX_LATENCY", "3.0")),
            max_files=int(env("AUDIO_QUALITY_MAX_FILES", "50")),
            local_file_access_root=env("LOCAL_FILE_ACCESS_ROOT", ""),
            training_api_url=_normalize_training_url(
                env("TRAINING_API_URL", DEFAULT_TRAINING_API_URL)
            ),
            training_api_key=env("TRAINING_API_KEY", ""),
            training_timeout=int(env("TRAINING_TIMEOUT", "300")),
            retry_max_attempts=int(env("AUDIO_QUALITY_RETRY_MAX_ATTEMPTS", "3")),
            retry_base_delay=float(env("AUDIO_QUALITY_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(env("AUDIO_QUALITY_RETRY_MAX_DELAY", "60.0")),
            tracing_enabled=_resolve_tracing_enabled(
                env("AUDIO_QUALITY_TRACING_ENABLED", ""), tracking_uri,
            ),
            mlflow_tracking_uri=tracking_uri,
            mlflow_experiment_name=env("MLFLOW_EXPERIMENT_NAME", "audio-quality-mcp"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the shared ServerConfig, building it on first use.

    The first call loads ``~/.config/audio-quality-mcp/.env`` into any
    unset variables before reading the environment.
    """
    global _config
    if _config is None:
        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger.info("Loaded %d setting(s) from .env: %s", len(injected), ", ".join(injected))
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Replace the shared config with a validated copy; ``None`` overrides are ignored."""
    global _config
    merged = get_config().model_dump() | {k: v for k, v in overrides.items() if v is not None}
    _config = ServerConfig(**merged)
    return _config
