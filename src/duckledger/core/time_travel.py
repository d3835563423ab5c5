"""⏳ Time travel - read and restore earlier snapshots of lake tables.

DuckLake keeps every committed snapshot:

    SELECT * FROM cars AT (VERSION => 3)
    SELECT * FROM cars AT (TIMESTAMP => TIMESTAMP '2025-01-01 00:00:00')
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import duckdb
import pandas as pd

from duckledger.errors import ExecutionError
from duckledger.query.expressions import lit
from duckledger.query.pipeline import LakeQuery

if TYPE_CHECKING:
    from duckledger.engine.duckdb import LakeEngine


def _timestamp_literal(timestamp: datetime | str) -> str:
    if isinstance(timestamp, datetime):
        timestamp = timestamp.strftime("%Y-%m-%d %H:%M:%S")
    return f"TIMESTAMP {lit(str(timestamp))}"


def _at_version(version: int) -> str:
    return f"AT (VERSION => {int(version)})"


def _at_timestamp(timestamp: datetime | str) -> str:
    return f"AT (TIMESTAMP => {_timestamp_literal(timestamp)})"


def _pinned(engine: "LakeEngine", table_name: str, clause: str) -> LakeQuery:
    source = f"{table_name} {clause}"
    return LakeQuery(
        source=source,
        columns=tuple(engine.columns(source)),
        engine=engine,
        target=table_name,
    )


def get_table_version(engine: "LakeEngine", table_name: str, version: int) -> LakeQuery:
    """Lazy pipeline over ``table_name`` as of snapshot ``version``."""
    return _pinned(engine, table_name, _at_version(version))


def get_table_asof(
    engine: "LakeEngine", table_name: str, timestamp: datetime | str
) -> LakeQuery:
    """Lazy pipeline over ``table_name`` as it was at ``timestamp``."""
    return _pinned(engine, table_name, _at_timestamp(timestamp))


def list_snapshots(
    engine: "LakeEngine",
    table_name: str | None = None,
    lake_name: str | None = None,
) -> pd.DataFrame:
    """Snapshot history of the lake (snapshot_id, snapshot_time, changes, author...).

    With ``table_name``, only snapshots whose recorded changes mention the
    table are kept.
    """
    lake_name = lake_name or engine.lake_name or engine.current_database()
    sql = "SELECT * FROM ducklake_snapshots(?) ORDER BY snapshot_id"
    try:
        snapshots = engine.query(sql, [lake_name])
    except duckdb.Error as e:
        raise ExecutionError(f"Could not list snapshots of {lake_name}: {e}", sql) from e

    if table_name is None or snapshots.empty:
        return snapshots

    mentions = snapshots["changes"].astype(str).str.contains(table_name, regex=False)
    return snapshots[mentions].reset_index(drop=True)


def restore_table_version(
    engine: "LakeEngine",
    table_name: str,
    version: int | None = None,
    timestamp: datetime | str | None = None,
) -> None:
    """Replace the current contents of a table with an earlier snapshot.

    Exactly one of ``version`` / ``timestamp`` must be given. The restore is
    itself a new snapshot; history is never rewritten.
    """
    if version is None and timestamp is None:
        raise ValueError("Must provide either 'version' or 'timestamp'")
    if version is not None and timestamp is not None:
        raise ValueError("Cannot provide both 'version' and 'timestamp'")

    clause = _at_version(version) if version is not None else _at_timestamp(timestamp)
    sql = f"CREATE OR REPLACE TABLE {table_name} AS SELECT * FROM {table_name} {clause}"
    try:
        engine.execute(sql)
    except duckdb.Error as e:
        raise ExecutionError(f"Failed to restore table {table_name}: {e}", sql) from e
    engine.say(f"⏪ Table [cyan]{table_name}[/cyan] restored")
