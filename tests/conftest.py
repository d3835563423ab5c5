"""🧪 Shared pytest fixtures for duckledger tests."""

import duckdb
import pandas as pd
import pytest

from duckledger.config import get_settings
from duckledger.core.tables import create_table
from duckledger.engine import LakeEngine


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep DUCKLEDGER_* variables from the host out of the tests."""
    for key in ("LAKE_NAME", "LAKE_PATH", "AUTHOR", "QUIET", "STRICT", "THREADS", "MEMORY_LIMIT"):
        monkeypatch.delenv(f"DUCKLEDGER_{key}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine():
    """Engine over an in-memory database standing in for an attached lake.

    The database is attached as ``lake`` and made the default, so the engine
    behaves as if ``ATTACH 'ducklake:...' AS lake`` had run, without needing
    the DuckLake extension.
    """
    conn = duckdb.connect()
    conn.execute("ATTACH ':memory:' AS lake")
    conn.execute("USE lake")
    engine = LakeEngine.from_connection(conn, lake_name="lake")
    yield engine
    engine.close()


@pytest.fixture
def snapshot_catalog(engine):
    """Minimal ``__ducklake_metadata_lake`` catalog.

    Returns a function that appends a snapshot row and returns its id.
    """
    engine.execute("ATTACH ':memory:' AS __ducklake_metadata_lake")
    engine.execute(
        "CREATE TABLE __ducklake_metadata_lake.main.ducklake_snapshot "
        "(snapshot_id BIGINT, snapshot_time TIMESTAMP)"
    )
    engine.execute(
        "CREATE TABLE __ducklake_metadata_lake.main.ducklake_snapshot_changes "
        "(snapshot_id BIGINT, changes_made VARCHAR, author VARCHAR, "
        "commit_message VARCHAR, commit_extra_info VARCHAR)"
    )

    def add_snapshot(snapshot_id: int) -> int:
        engine.execute(
            "INSERT INTO __ducklake_metadata_lake.main.ducklake_snapshot "
            "VALUES (?, current_timestamp)",
            [snapshot_id],
        )
        engine.execute(
            "INSERT INTO __ducklake_metadata_lake.main.ducklake_snapshot_changes "
            "(snapshot_id, changes_made) VALUES (?, 'inserted_into_table:1')",
            [snapshot_id],
        )
        return snapshot_id

    return add_snapshot


@pytest.fixture
def tasks(engine):
    """Table ``T`` with ids 1..3 and a status column."""
    create_table(
        engine,
        pd.DataFrame({"id": [1, 2, 3], "status": ["open", "open", "open"]}),
        "T",
    )
    return engine.table("T")


@pytest.fixture
def keyed(engine):
    """Table ``K`` with a primary key, for upserts."""
    engine.execute("CREATE TABLE K (id INTEGER PRIMARY KEY, v VARCHAR)")
    engine.execute("INSERT INTO K VALUES (1, 'a')")
    return engine.table("K")


@pytest.fixture
def fetch_rows(engine):
    """Read a table back as ordered tuples."""

    def fetch(table: str, order_by: str = "id") -> list[tuple]:
        return engine.conn.execute(f"SELECT * FROM {table} ORDER BY {order_by}").fetchall()

    return fetch
