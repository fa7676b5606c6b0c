import os

import pytest

os.environ.setdefault("BOOTSTARTER_DATABASE_URL", "sqlite+pysqlite:///:memory:")

from bootstarter.db.database import build_engine, build_session_factory, reset_engine
from bootstarter.db.models import Base
from bootstarter.utils.settings import refresh_settings_cache
from tests.fixtures import catalog  # noqa: F401  registers the sample tables on Base

_SETTINGS_ENV = (
    "BOOTSTARTER_DEBUG",
    "BOOTSTARTER_DEFAULT_PAGE_LIMIT",
    "LOG_LEVEL",
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "API_VERSIONS",
    "API_AUTHOR_NAME",
    "API_AUTHOR_EMAIL",
    "API_AUTHOR_URL",
)


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Clear env + cached settings for each test to avoid cross-contamination."""
    for env_name in _SETTINGS_ENV:
        monkeypatch.delenv(env_name, raising=False)
    refresh_settings_cache()
    yield
    refresh_settings_cache()


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with every sample table created."""
    engine = build_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(scope="session", autouse=True)
def _dispose_cached_engine():
    yield
    reset_engine()
