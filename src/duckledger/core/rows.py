"""🧾 Row operations - insert, update, delete and upsert rows matched by key.

``x`` is the target (a LakeQuery from ``engine.table()``), ``y`` holds the
rows to apply, ``by`` names the key columns (default: first column of y).
Only rows whose key appears in ``y`` are touched; all others are left as-is.

Example:
    rows_update(engine.table("stock"), pd.DataFrame({"sku": ["A1"], "qty": [7]}), by="sku")
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Literal

import pandas as pd
import pyarrow as pa

from duckledger.errors import RowMatchError
from duckledger.query.expressions import quote_ident
from duckledger.query.pipeline import LakeQuery

from .exec import resolve_engine, resolve_target, upsert_table

if TYPE_CHECKING:
    from duckledger.engine.duckdb import LakeEngine

ROWS_VIEW = "__duckledger_rows_y"


def _prepare(
    x: LakeQuery,
    y: pd.DataFrame | pa.Table,
    by: Sequence[str] | str | None,
    table_name: str | None,
    engine: "LakeEngine | None",
) -> tuple["LakeEngine", str, pd.DataFrame, list[str]]:
    engine = resolve_engine(x, engine)
    target = resolve_target(x, table_name)
    if isinstance(y, pa.Table):
        y = y.to_pandas()
    y = y.rename(columns=str)

    if by is None:
        by = [y.columns[0]]
        engine.say(f"Matching, by = {by[0]!r}")
    elif isinstance(by, str):
        by = [by]
    else:
        by = list(by)

    missing = [k for k in by if k not in y.columns]
    if missing:
        raise KeyError(f"Key column(s) not found in y: {', '.join(missing)}")
    return engine, target, y, by


def _table_ref(target: str) -> str:
    """Name a correlated subquery can use to refer to the target table."""
    return target.rsplit(".", 1)[-1]


def _key_match(by: list[str], left: str, right: str) -> str:
    return " AND ".join(f"{left}.{quote_ident(k)} = {right}.{quote_ident(k)}" for k in by)


def _count_matches(engine: "LakeEngine", target: str, by: list[str], matched: bool) -> int:
    exists = "EXISTS" if matched else "NOT EXISTS"
    return engine.fetch_value(
        f"SELECT count(*) FROM {ROWS_VIEW} AS y "
        f"WHERE {exists} (SELECT 1 FROM {target} AS x WHERE {_key_match(by, 'x', 'y')})"
    )


def rows_insert(
    x: LakeQuery,
    y: pd.DataFrame | pa.Table,
    by: Sequence[str] | str | None = None,
    conflict: Literal["ignore", "error"] = "ignore",
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
) -> int:
    """Insert rows of ``y`` whose key is not yet in the table.

    Raises:
        RowMatchError: conflict="error" and some keys already exist
    """
    engine, target, y, by = _prepare(x, y, by, table_name, engine)
    if y.empty:
        return 0

    columns = ", ".join(quote_ident(c) for c in y.columns)
    with engine.registered(ROWS_VIEW, y):
        if conflict == "error":
            conflicts = _count_matches(engine, target, by, matched=True)
            if conflicts:
                raise RowMatchError(f"{conflicts} row(s) of y already exist in {target}")

        return engine.execute_mutation(
            f"INSERT INTO {target} ({columns}) "
            f"SELECT {columns} FROM {ROWS_VIEW} AS y "
            f"WHERE NOT EXISTS (SELECT 1 FROM {target} AS x WHERE {_key_match(by, 'x', 'y')})"
        )


def rows_update(
    x: LakeQuery,
    y: pd.DataFrame | pa.Table,
    by: Sequence[str] | str | None = None,
    unmatched: Literal["ignore", "error"] = "ignore",
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
) -> int:
    """Overwrite the non-key columns of rows matched by key.

    Raises:
        RowMatchError: unmatched="error" and some keys of y are not in the table
    """
    engine, target, y, by = _prepare(x, y, by, table_name, engine)
    if y.empty:
        return 0

    value_columns = [c for c in y.columns if c not in by]
    if not value_columns:
        raise ValueError("y has no columns to update besides the 'by' keys")

    set_clause = ", ".join(f"{quote_ident(c)} = y.{quote_ident(c)}" for c in value_columns)
    with engine.registered(ROWS_VIEW, y):
        if unmatched == "error":
            missing = _count_matches(engine, target, by, matched=False)
            if missing:
                raise RowMatchError(f"{missing} row(s) of y have no match in {target}")

        return engine.execute_mutation(
            f"UPDATE {target} SET {set_clause} FROM {ROWS_VIEW} AS y "
            f"WHERE {_key_match(by, _table_ref(target), 'y')}"
        )


def rows_delete(
    x: LakeQuery,
    y: pd.DataFrame | pa.Table,
    by: Sequence[str] | str | None = None,
    unmatched: Literal["ignore", "error"] = "ignore",
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
) -> int:
    """Delete rows whose key appears in ``y``.

    Raises:
        RowMatchError: unmatched="error" and some keys of y are not in the table
    """
    engine, target, y, by = _prepare(x, y, by, table_name, engine)
    if y.empty:
        return 0

    with engine.registered(ROWS_VIEW, y):
        if unmatched == "error":
            missing = _count_matches(engine, target, by, matched=False)
            if missing:
                raise RowMatchError(f"{missing} row(s) of y have no match in {target}")

        return engine.execute_mutation(
            f"DELETE FROM {target} WHERE EXISTS "
            f"(SELECT 1 FROM {ROWS_VIEW} AS y WHERE {_key_match(by, 'y', _table_ref(target))})"
        )


def rows_upsert(
    x: LakeQuery,
    y: pd.DataFrame | pa.Table,
    by: Sequence[str] | str | None = None,
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
) -> int:
    """Insert new keys and update existing ones.

    The table needs a PRIMARY KEY or UNIQUE constraint on ``by``.
    """
    engine, target, y, by = _prepare(x, y, by, table_name, engine)
    if y.empty:
        return 0

    # y may carry a subset of the columns; the INSERT names them explicitly
    ordered = [c for c in engine.columns(target) if c in y.columns]
    extra = [c for c in y.columns if c not in ordered]
    if extra:
        raise KeyError(f"Column(s) of y not found in {target}: {', '.join(extra)}")

    with engine.registered(ROWS_VIEW, y):
        source = LakeQuery.from_sql_source(
            ROWS_VIEW, ordered, engine=engine, target=target
        ).select(*ordered)
        return upsert_table(source, by, engine=engine, columns=ordered)
