"""
配置 — Flask app.config 的默认值，均可通过 ML_SIMULATOR_* 环境变量覆盖
"""
import logging
import os


def _env(name, default, cast=str):
    raw = os.environ.get(f"ML_SIMULATOR_{name}")
    if raw is None:
        return default
    if cast is bool:
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return cast(raw)


class Config:
    SECRET_KEY = _env("SECRET_KEY", "ml-simulator-secret-key")
    HOST = _env("HOST", "0.0.0.0")
    PORT = _env("PORT", 5000, int)
    DEBUG = _env("DEBUG", True, bool)
    TESTING = False
    LOG_LEVEL = _env("LOG_LEVEL", "DEBUG")

    # 画布尺寸（像素），算法坐标与浏览器 canvas 一致
    CANVAS_WIDTH = _env("CANVAS_WIDTH", 700, int)
    CANVAS_HEIGHT = _env("CANVAS_HEIGHT", 500, int)

    DEFAULT_ALGORITHM = _env("DEFAULT_ALGORITHM", "linear-regression")
    DEFAULT_DATASET = _env("DEFAULT_DATASET", "sample1")
    RANDOM_POINT_COUNT = _env("RANDOM_POINT_COUNT", 20, int)

    # 会话上限，超出后淘汰最久未使用的会话
    MAX_SESSIONS = _env("MAX_SESSIONS", 256, int)


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    LOG_LEVEL = "WARNING"


def log_level(config):
    return getattr(logging, str(config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
