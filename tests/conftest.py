import os
import tempfile
from pathlib import Path

import pytest


TESTS_DIR = Path(__file__).parent
_DB_DIR = Path(tempfile.mkdtemp(prefix="cs2logs-tests-"))

# Applied at import time: the engine in cs2logs.server.plugins is built from
# the settings the first time that module is imported during collection.
BASELINE_ENV = {
    # App
    "APP_NAME": "CS2 Log Service",
    "APP_VERSION": "0.1.0",
    "APP_DEBUG": "false",
    "APP_ENVIRONMENT": "development",
    # API
    "API_HOST": "0.0.0.0",
    "API_PORT": "9090",
    "API_WORKERS": "1",
    "API_RELOAD": "false",
    "API_LOG_LEVEL": "INFO",
    "API_CORS_ORIGINS": "http://localhost:3000,http://localhost:5173",
    # Database
    "DB_DSN": f"sqlite+aiosqlite:///{_DB_DIR / 'cs2logs.db'}",
    "DB_ECHO": "false",
    "DB_POOL_DISABLED": "true",
    "DB_POOL_SIZE": "5",
    "DB_MAX_OVERFLOW": "10",
    "DB_POOL_TIMEOUT": "30",
    "DB_POOL_RECYCLE": "3600",
    "DB_DROP_ON_STARTUP": "true",
    # Log parser
    "LOGPARSER_MAX_LINES": "10000",
    "LOGPARSER_AUTO_REGISTER_SERVERS": "true",
    "LOGPARSER_STATS_BUFFER_MAX_AGE_SECONDS": "600",
    # Scheduler
    "SCHEDULER_ENABLED": "false",
}
os.environ.update(BASELINE_ENV)


@pytest.fixture(scope="session", autouse=True)
def baseline_settings_env():
    """Provide baseline env vars so tests are not affected by local .env.

    Pydantic-settings precedence: init args > env vars > .env > defaults.
    Setting these ensures stable defaults regardless of any .env present.
    """
    os.environ.update(BASELINE_ENV)


@pytest.fixture(autouse=True)
def refresh_settings_cache():
    """Clear settings cache so env changes take effect per test.

    Ensures tests using monkeypatch.setenv() get a fresh Settings instance.
    """
    from cs2logs.config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_match_log() -> str:
    """A full match worth of classifiable CS2 log lines."""
    return (TESTS_DIR / "sample_match_log.txt").read_text(encoding="utf-8")


@pytest.fixture
def sample_round_stats() -> str:
    """One ``JSON_BEGIN``/``JSON_END`` round statistics block."""
    return (TESTS_DIR / "sample_round_stats.txt").read_text(encoding="utf-8")


@pytest.fixture
def client():
    """TestClient running the app lifespan against a freshly created SQLite schema."""
    from litestar.testing import TestClient
    from cs2logs.server.core import create_app

    with TestClient(app=create_app()) as test_client:
        yield test_client
