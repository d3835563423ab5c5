"""🛠️ Statement synthesis - build DELETE / UPDATE / INSERT / upsert SQL.

Statements are reassembled from the verbatim pieces of the parsed SELECT;
expressions are never re-rendered.
"""

from __future__ import annotations

from collections.abc import Sequence

from duckledger.errors import NoAssignmentsError, NoUpdateColumnsError, SynthesisError
from duckledger.query.expressions import quote_ident, unquote_ident

from .classifier import Operation
from .parser import SelectQuery


def column_assignments(query: SelectQuery) -> list[tuple[str, str]]:
    """(column, expression) pairs for every aliased or conditional item, in order."""
    return [
        (unquote_ident(item.alias), item.expression)
        for item in query.projection
        if item.is_assignment and item.alias is not None
    ]


def _target_ref(query: SelectQuery, target: str) -> str:
    # predicates may be qualified with the source alias
    alias = query.source_alias
    return f"{target} AS {alias}" if alias else target


def synthesize_delete(query: SelectQuery, target: str) -> str:
    if query.predicate is None:
        raise SynthesisError("DELETE needs a WHERE predicate to keep", query.text)
    return f"DELETE FROM {_target_ref(query, target)} WHERE NOT ({query.predicate})"


def synthesize_update(query: SelectQuery, target: str) -> str:
    assignments = column_assignments(query)
    if not assignments:
        raise NoAssignmentsError("No column assignments found for UPDATE operation", query.text)

    set_clause = ", ".join(f"{column} = {expression}" for column, expression in assignments)
    sql = f"UPDATE {_target_ref(query, target)} SET {set_clause}"
    if query.predicate is not None:
        sql += f" WHERE {query.predicate}"
    return sql


def synthesize_insert(query: SelectQuery, target: str) -> str:
    return f"INSERT INTO {target} {query.text}"


def synthesize(operation: Operation, query: SelectQuery, target: str) -> str:
    """Build the mutating statement for a classified query."""
    if operation is Operation.DELETE:
        return synthesize_delete(query, target)
    if operation is Operation.UPDATE:
        return synthesize_update(query, target)
    return synthesize_insert(query, target)


def projected_columns(query: SelectQuery) -> list[str]:
    """Output column names; ``*`` items contribute nothing."""
    names: list[str] = []
    for item in query.projection:
        name = item.column_name
        if name is not None and name not in names:
            names.append(name)
    return names


def _column_key(name: str) -> str:
    """Canonical column spelling: plain identifiers bare, anything else quoted."""
    name = name.strip()
    if len(name) >= 2 and name[0] == name[-1] == '"':
        return unquote_ident(name)
    return quote_ident(name)


def synthesize_upsert(
    query: SelectQuery,
    target: str,
    by: Sequence[str],
    columns: Sequence[str] | None = None,
) -> str:
    """``INSERT ... ON CONFLICT (by) DO UPDATE SET col = EXCLUDED.col, ...``.

    The target must already enforce a PRIMARY KEY or UNIQUE constraint on
    ``by``; this is not checked here. With ``columns`` the INSERT names the
    target columns explicitly and only those are updated.
    """
    if isinstance(by, str):
        by = [by]
    keys = [_column_key(k) for k in by]
    if not keys:
        raise ValueError(
            "'by' is required for upsert operations - specify the column(s) to match on"
        )

    if columns is not None:
        insert_columns = [_column_key(c) for c in columns]
    else:
        insert_columns = projected_columns(query)
    update_columns = [c for c in insert_columns if c not in keys]
    if not update_columns:
        raise NoUpdateColumnsError(
            "No columns to update - all columns are in the 'by' key set", query.text
        )

    into = target if columns is None else f"{target} ({', '.join(insert_columns)})"
    update_set = ", ".join(f"{c} = EXCLUDED.{c}" for c in update_columns)
    return (
        f"INSERT INTO {into} {query.text} "
        f"ON CONFLICT ({', '.join(keys)}) DO UPDATE SET {update_set}"
    )
