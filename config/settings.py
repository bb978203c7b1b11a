# config/settings.py
import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
load_dotenv(os.path.join(BASE_DIR, ".env"))  # 自动加载环境变量


def _as_bool(val, default=False):
    if val is None:
        return default
    return str(val).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret-key")
    # 是否校验 Redis 中的 token 黑名单
    JWT_CHECK_REVOKED = _as_bool(os.getenv("JWT_CHECK_REVOKED", "1"), True)
    REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")

    # 日志相关
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "./logs")
    LOG_JSON = os.getenv("LOG_JSON", "1") == "1"  # 是否 JSON 格式
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", 5 * 1024 * 1024))
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", 5))
    APP_NAME = os.getenv("APP_NAME", "case-bulk-edit")

    # ========= 批量编辑事务 =========
    # 基础超时（秒），批量越大预算越高
    BULK_EDIT_TIMEOUT_SECONDS = float(os.getenv("BULK_EDIT_TIMEOUT_SECONDS", 60))
    # 每个用例追加的预算（秒）
    BULK_EDIT_TIMEOUT_PER_CASE_SECONDS = float(os.getenv("BULK_EDIT_TIMEOUT_PER_CASE_SECONDS", 0.5))
    # 超时上限（秒）
    BULK_EDIT_TIMEOUT_MAX_SECONDS = float(os.getenv("BULK_EDIT_TIMEOUT_MAX_SECONDS", 600))

    # ========= 审计日志 =========
    AUDIT_LOG_ENABLED = _as_bool(os.getenv("AUDIT_LOG_ENABLED", "1"), True)
    AUDIT_LOG_QUEUE_KEY = os.getenv("AUDIT_LOG_QUEUE_KEY", "audit:events")

    # =========================================


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI")


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URI", "sqlite:///:memory:")
    LOG_JSON = False
    JWT_CHECK_REVOKED = False
    AUDIT_LOG_ENABLED = False


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name):
    return config_map.get(config_name, DevelopmentConfig)
