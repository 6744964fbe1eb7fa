import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-secret-key")
    WTF_CSRF_TIME_LIMIT = None
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_INPUT_BYTES", str(5 * 1024 * 1024)))
    DEFAULT_IGNORE_CASE = _env_flag("DEFAULT_IGNORE_CASE", "0")
    DEFAULT_TRIM = _env_flag("DEFAULT_TRIM", "1")
    DEFAULT_IGNORE_EMPTY = _env_flag("DEFAULT_IGNORE_EMPTY", "1")


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
