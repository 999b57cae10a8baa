"""Unit tests for environment-driven operator configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from webapp_operator.config import OperatorConfig, load_config


class TestOperatorConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("SCHEDULE", "IMAGE", "MAX_WORKERS", "LOG_LEVEL", "METRICS_PORT"):
            monkeypatch.delenv(f"WEBAPP_OPERATOR_{var}", raising=False)

        cfg = OperatorConfig()

        assert cfg.schedule == "*/1 * * * *"
        assert cfg.image == "ubuntu"
        assert cfg.max_workers == 4
        assert cfg.metrics_port == 8080
        assert cfg.field_manager == "webapp-operator"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WEBAPP_OPERATOR_SCHEDULE", "0 * * * *")
        monkeypatch.setenv("WEBAPP_OPERATOR_MAX_WORKERS", "8")
        monkeypatch.setenv("WEBAPP_OPERATOR_LOG_LEVEL", "debug")

        cfg = OperatorConfig()

        assert cfg.schedule == "0 * * * *"
        assert cfg.max_workers == 8
        assert cfg.log_level == "DEBUG"

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            OperatorConfig(log_level="chatty")

    def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ValidationError):
            OperatorConfig(max_workers=0)


def test_load_config_is_cached():
    load_config.cache_clear()
    try:
        assert load_config() is load_config()
    finally:
        load_config.cache_clear()
