import logging

import config
from config import _env, log_level


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ML_SIMULATOR_PORT", "8080")
    monkeypatch.setenv("ML_SIMULATOR_DEBUG", "off")
    assert _env("PORT", 5000, int) == 8080
    assert _env("DEBUG", True, bool) is False


def test_env_default(monkeypatch):
    monkeypatch.delenv("ML_SIMULATOR_CANVAS_WIDTH", raising=False)
    assert _env("CANVAS_WIDTH", 700, int) == 700


def test_testing_config():
    assert config.TestingConfig.TESTING is True
    assert config.TestingConfig.DEBUG is False
    assert config.TestingConfig.CANVAS_WIDTH == config.Config.CANVAS_WIDTH


def test_log_level():
    assert log_level({"LOG_LEVEL": "warning"}) == logging.WARNING
    assert log_level({"LOG_LEVEL": "nonsense"}) == logging.INFO
    assert log_level({}) == logging.INFO
