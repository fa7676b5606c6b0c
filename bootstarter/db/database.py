"""
Database engine and session management.

Builds the SQLAlchemy engine from settings (in-memory SQLite when nothing is
configured) and exposes a FastAPI dependency yielding a session.
"""
import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bootstarter.utils.settings import get_settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite with StaticPool so the schema persists across connections
    if ":memory:" in url or url.endswith("://"):
        kwargs["poolclass"] = StaticPool
    return kwargs


def build_engine(url: str) -> Engine:
    return create_engine(url, **_engine_kwargs(url))


def build_session_factory(engine: Engine) -> sessionmaker:
    # Entities returned by a service outlive the session that loaded them.
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@lru_cache(maxsize=None)
def get_engine() -> Engine:
    url = get_settings().database_url
    logger.info("database_engine: dialect=%s", url.split(":", 1)[0])
    return build_engine(url)


@lru_cache(maxsize=None)
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())


def create_schema(engine: Engine = None) -> None:
    """Create every table registered on the declarative base."""
    from bootstarter.db.models import Base  # local import to avoid circular import at module load

    Base.metadata.create_all(bind=engine or get_engine())


def reset_engine() -> None:
    """Dispose the cached engine and forget cached factories (useful for tests)."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()


def get_db():
    """Dependency to get a database session."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
