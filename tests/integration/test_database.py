from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool

from bootstarter.db import database
from bootstarter.utils.settings import refresh_settings_cache


def test_engine_built_from_settings(monkeypatch):
    monkeypatch.setenv("BOOTSTARTER_DATABASE_URL", "sqlite+pysqlite:///:memory:")
    refresh_settings_cache()
    database.reset_engine()

    engine = database.get_engine()

    assert engine is database.get_engine()
    assert isinstance(engine.pool, StaticPool)
    database.reset_engine()


def test_create_schema_and_get_db(monkeypatch):
    monkeypatch.setenv("BOOTSTARTER_DATABASE_URL", "sqlite+pysqlite:///:memory:")
    refresh_settings_cache()
    database.reset_engine()

    database.create_schema()
    assert "products" in inspect(database.get_engine()).get_table_names()

    sessions = database.get_db()
    db = next(sessions)
    assert db.execute(text("SELECT 1")).scalar_one() == 1
    sessions.close()
    database.reset_engine()


def test_file_sqlite_url_keeps_default_pool(tmp_path):
    engine = database.build_engine(f"sqlite:///{tmp_path / 'catalog.db'}")

    assert not isinstance(engine.pool, StaticPool)
    engine.dispose()
