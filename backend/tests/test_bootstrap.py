from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from app.db import bootstrap
from app.services.storage import CATEGORIES


def _raise_error(message: str):
    raise RuntimeError(message)


@pytest.fixture()
def blank_engine(monkeypatch):
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    monkeypatch.setattr(bootstrap, "engine", engine)
    yield engine
    engine.dispose()


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_travel_status_column", lambda: None)
    monkeypatch.setattr(bootstrap, "_ensure_additive_columns", lambda: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_bootstrap_creates_schema_and_upload_directories(blank_engine, monkeypatch, tmp_path):
    monkeypatch.setattr(bootstrap, "get_settings", lambda: SimpleNamespace(upload_root=str(tmp_path / "uploads")))

    bootstrap.ensure_runtime_schema_compatibility()

    table_names = set(inspect(blank_engine).get_table_names())
    assert set(bootstrap.REQUIRED_COLUMNS) <= table_names
    for category in CATEGORIES:
        assert (tmp_path / "uploads" / category).is_dir()


def test_additive_columns_patch_older_tables(blank_engine):
    with blank_engine.begin() as connection:
        connection.execute(text("CREATE TABLE conference_sessions (id VARCHAR(64) PRIMARY KEY, title VARCHAR(255))"))
        connection.execute(text("CREATE TABLE cv_uploads (id VARCHAR(64) PRIMARY KEY)"))
        connection.execute(text("INSERT INTO conference_sessions (id, title) VALUES ('s1', 'Legacy')"))

    bootstrap._ensure_travel_status_column()
    bootstrap._ensure_additive_columns()

    inspector = inspect(blank_engine)
    session_columns = {item["name"] for item in inspector.get_columns("conference_sessions")}
    assert {"travel_status", "poster_path", "optional_query"} <= session_columns
    assert "session_metadata_id" in {item["name"] for item in inspector.get_columns("cv_uploads")}

    with blank_engine.connect() as connection:
        travel_status = connection.execute(text("SELECT travel_status FROM conference_sessions")).scalar_one()
    assert travel_status == "pending"

    with pytest.raises(RuntimeError, match="Missing required tables"):
        bootstrap._assert_required_columns()
