import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from config import EngineConfig, load_config


class TestLoadConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PAYMENTS_LOG_LEVEL", raising=False)
        monkeypatch.delenv("PAYMENTS_REPORT_STATS", raising=False)

        assert load_config() == EngineConfig(log_level=logging.WARNING, report_stats=True)

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "debug")
        monkeypatch.setenv("PAYMENTS_REPORT_STATS", "no")

        config = load_config()

        assert config.log_level == logging.DEBUG
        assert config.report_stats is False

    def test_invalid_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "chatty")
        monkeypatch.setenv("PAYMENTS_REPORT_STATS", "maybe")

        assert load_config() == EngineConfig()
