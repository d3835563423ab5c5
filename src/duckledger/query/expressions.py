"""🧮 SQL expression helpers for pipelines.

Values passed to ``LakeQuery.mutate`` are SQL text. These helpers build that
text safely:

    lit("done")                       -> 'done'
    if_else("id = 1", lit("done"), "status")
    case_when(("score >= 90", lit("A")), ("score >= 80", lit("B")), default=lit("C"))
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLExpr(str):
    """SQL text that must be emitted verbatim."""


def lit(value: Any) -> SQLExpr:
    """Render a Python value as a SQL literal."""
    if value is None:
        return SQLExpr("NULL")
    if isinstance(value, bool):
        return SQLExpr("TRUE" if value else "FALSE")
    if isinstance(value, (int, float)):
        return SQLExpr(repr(value))
    if isinstance(value, datetime):
        return SQLExpr(f"TIMESTAMP '{value.isoformat(sep=' ')}'")
    if isinstance(value, date):
        return SQLExpr(f"DATE '{value.isoformat()}'")
    text = str(value).replace("'", "''")
    return SQLExpr(f"'{text}'")


def quote_ident(name: str) -> str:
    """Quote an identifier unless it is a plain one."""
    if IDENTIFIER_PATTERN.match(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def unquote_ident(name: str) -> str:
    """Strip identifier quotes, keeping them when the bare text is not a plain identifier."""
    name = name.strip()
    if len(name) >= 2 and name[0] == name[-1] == '"':
        inner = name[1:-1].replace('""', '"')
        if IDENTIFIER_PATTERN.match(inner):
            return inner
    return name


def to_sql(value: Any) -> str:
    """Strings are SQL expressions already; anything else becomes a literal."""
    if isinstance(value, str):
        return str(value)
    return lit(value)


def case_when(*branches: tuple[str, Any], default: Any = None) -> SQLExpr:
    """Build a ``CASE WHEN ... END`` expression.

    Args:
        branches: (condition, value) pairs evaluated in order
        default: Value for the ELSE branch (omitted when None)
    """
    if not branches:
        raise ValueError("case_when() needs at least one (condition, value) branch")

    parts = ["CASE"]
    for condition, value in branches:
        parts.append(f"WHEN {condition} THEN {to_sql(value)}")
    if default is not None:
        parts.append(f"ELSE {to_sql(default)}")
    parts.append("END")
    return SQLExpr(" ".join(parts))


def if_else(condition: str, true: Any, false: Any) -> SQLExpr:
    """Two-branch conditional, as ``CASE WHEN cond THEN a ELSE b END``."""
    return case_when((condition, true), default=false)
