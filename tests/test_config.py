"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from audio_quality_mcp.config import (
    DEFAULT_TRAINING_API_URL,
    ServerConfig,
    _normalize_training_url,
    get_config,
    update_config,
)


class TestNormalizeTrainingUrl:
    @pytest.mark.parametrize("raw,expected", [
        ("http://localhost:8000/", "http://localhost:8000"),
        ("https://train.example.com", "https://train.example.com"),
        ("localhost:8000", "http://localhost:8000"),
        ("127.0.0.1:9000", "http://127.0.0.1:9000"),
        ("192.168.1.20", "http://192.168.1.20"),
        ("train.example.com", "https://train.example.com"),
        ("  ", ""),
        ("${TRAINING_API_URL}", ""),
        ("$TRAINING_API_URL", ""),
    ])
    def test_normalization(self, raw: str, expected: str):
        assert _normalize_training_url(raw) == expected


class TestServerConfig:
    def test_defaults(self, monkeypatch):
        for var in (
            "AUDIO_QUALITY_MIN_LATENCY", "AUDIO_QUALITY_MAX_LATENCY",
            "TRAINING_API_URL", "TRAINING_API_KEY", "MLFLOW_TRACKING_URI",
        ):
            monkeypatch.delenv(var, raising=False)
        cfg = ServerConfig.from_env()
        assert cfg.default_concurrency == 3
        assert cfg.min_latency == 1.0
        assert cfg.max_latency == 3.0
        assert cfg.training_api_url == DEFAULT_TRAINING_API_URL
        assert cfg.training_timeout == 300
        assert cfg.tracing_enabled is False

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("AUDIO_QUALITY_CONCURRENCY", "5")
        monkeypatch.setenv("TRAINING_API_URL", "ml.internal.example.org/")
        monkeypatch.setenv("TRAINING_API_KEY", "secret")
        cfg = ServerConfig.from_env()
        assert cfg.default_concurrency == 5
        assert cfg.training_api_url == "https://ml.internal.example.org"
        assert cfg.training_api_key == "secret"

    def test_tracing_needs_uri_and_respects_opt_out(self, monkeypatch):
        monkeypatch.setenv("MLFLOW_TRACKING_URI", "http://mlflow:5000")
        monkeypatch.setenv("AUDIO_QUALITY_TRACING_ENABLED", "")
        assert ServerConfig.from_env().tracing_enabled is True
        monkeypatch.setenv("AUDIO_QUALITY_TRACING_ENABLED", "false")
        assert ServerConfig.from_env().tracing_enabled is False

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValidationError):
            ServerConfig(default_concurrency=0)

    def test_rejects_negative_latency(self):
        with pytest.raises(ValidationError):
            ServerConfig(min_latency=-0.1)

    def test_rejects_inverted_latency_range(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            ServerConfig(min_latency=2.0, max_latency=1.0)

    def test_rejects_zero_retry_delay(self):
        with pytest.raises(ValidationError):
            ServerConfig(retry_base_delay=0)


class TestSingleton:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_update_config_ignores_none(self):
        before = get_config()
        after = update_config(default_concurrency=7, min_latency=None)
        assert after.default_concurrency == 7
        assert after.min_latency == before.min_latency
        assert get_config() is after

    def test_update_config_validates(self):
        with pytest.raises(ValidationError):
            update_config(default_concurrency=0)

    def test_loads_dotenv_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("TRAINING_API_KEY=from-file\n")
        monkeypatch.setenv("TRAINING_API_KEY", "")
        monkeypatch.setattr("audio_quality_mcp.dotenv.DEFAULT_ENV_PATH", env_file)
        assert get_config().training_api_key == "from-file"
