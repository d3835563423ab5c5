"""🗃️ Table operations - create, replace and look up lake tables."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd
import pyarrow as pa

from duckledger.query.pipeline import LakeQuery

from .exec import resolve_engine
from .metadata import metadata_database

if TYPE_CHECKING:
    from duckledger.engine.duckdb import LakeEngine


def _temp_view_name(table_name: str) -> str:
    return "__temp_view_" + re.sub(r"[^A-Za-z0-9]", "_", table_name)


def create_table(
    engine: "LakeEngine",
    data: pd.DataFrame | pa.Table | LakeQuery | str | Path,
    table_name: str,
) -> None:
    """Create a lake table from data.

    Args:
        engine: LakeEngine to write through
        data: DataFrame, Arrow table, LakeQuery (collected first),
            or a file path / URL DuckDB can read (CSV, Parquet, JSON...)
        table_name: Name of the new table

    Example:
        create_table(engine, df, "cars")
        create_table(engine, "https://example.com/flights.parquet", "flights")
    """
    if isinstance(data, LakeQuery):
        data = data.collect()

    if isinstance(data, (pd.DataFrame, pa.Table)):
        with engine.registered(_temp_view_name(table_name), data) as view:
            engine.execute(f"CREATE TABLE {table_name} AS SELECT * FROM {view}")
        engine.say(f"📦 Created table [cyan]{table_name}[/cyan]")
        return

    if not isinstance(data, (str, Path)):
        raise TypeError(
            "data must be a DataFrame, Arrow table, LakeQuery, file path or URL; "
            f"got {type(data).__name__}"
        )

    source = str(data)
    if re.match(r"^https?://", source):
        engine.install_extension("httpfs")
    escaped = source.replace("'", "''")
    engine.execute(f"CREATE TABLE {table_name} AS FROM '{escaped}'")
    engine.say(f"📦 Created table [cyan]{table_name}[/cyan] from {source}")


def replace_table(
    query: LakeQuery,
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
) -> int:
    """Overwrite a table with the result of ``query``.

    The query is collected first, so it may read from the table it replaces.
    Use this for schema changes (adding or dropping columns), which
    ``lake_exec`` cannot express.

    Returns:
        Number of rows written
    """
    engine = resolve_engine(query, engine)
    table_name = table_name or query.target
    if not table_name:
        raise ValueError("table_name must be provided either as an argument or via engine.table()")

    engine.say(f"🔄 Replacing table [cyan]{table_name}[/cyan]")
    new_data = query.collect()
    engine.say(f"Collected {len(new_data)} rows with {len(new_data.columns)} columns")

    engine.execute(f"DROP TABLE IF EXISTS {table_name}")
    create_table(engine, new_data, table_name)
    return len(new_data)


def get_table(engine: "LakeEngine", table_name: str) -> LakeQuery:
    """Lazy pipeline over a lake table (mutations target it by default)."""
    return engine.table(table_name)


def get_metadata_table(
    engine: "LakeEngine",
    table_name: str,
    lake_name: str | None = None,
) -> LakeQuery:
    """Lazy pipeline over a DuckLake catalog table, e.g. ``ducklake_snapshot``."""
    lake_name = lake_name or engine.lake_name or engine.current_database()
    if not lake_name:
        raise ValueError("Could not determine lake_name. Please provide it explicitly.")
    return engine.table(f"{metadata_database(lake_name)}.main.{table_name}")

