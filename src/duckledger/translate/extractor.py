"""📤 Query text extraction - turn a pipeline into one normalized SQL string."""

from __future__ import annotations

import re
from typing import Any

from duckledger.errors import ExtractionError

SQL_MARKER_PATTERN = re.compile(r"^\s*<SQL>\s*", re.IGNORECASE)


def _is_ibis_expr(obj: Any) -> bool:
    return type(obj).__module__.startswith("ibis.")


def render_sql(pipeline: Any) -> str:
    """Ask a pipeline for its SQL text without running it.

    Accepts a ``LakeQuery`` or ``IbisQuery`` (``sql()``), a raw ibis
    expression, a DuckDB relation (``sql_query()``) or a plain SQL string.
    """
    if isinstance(pipeline, str):
        return pipeline
    if _is_ibis_expr(pipeline):
        import ibis

        return ibis.to_sql(pipeline, dialect="duckdb")
    for method in ("sql", "sql_query"):
        render = getattr(pipeline, method, None)
        if callable(render):
            return render()
    raise ExtractionError(
        f"Cannot render SQL from {type(pipeline).__name__}; "
        "expected a LakeQuery, an ibis expression, a DuckDB relation or a SQL string"
    )


def normalize_whitespace(sql: str) -> str:
    """Collapse whitespace runs outside quoted literals and identifiers."""
    out: list[str] = []
    quote: str | None = None
    pending_space = False

    for ch in sql:
        if quote is not None:
            out.append(ch)
            if ch == quote:
                # a doubled quote closes and immediately reopens
                quote = None
            continue
        if ch.isspace():
            pending_space = True
            continue
        if pending_space and out:
            out.append(" ")
        pending_space = False
        out.append(ch)
        if ch in ("'", '"'):
            quote = ch

    return "".join(out)


def extract_sql(pipeline: Any) -> str:
    """Return the normalized SQL text of ``pipeline``.

    Raises:
        ExtractionError: the pipeline rendered no SQL
    """
    raw = render_sql(pipeline)
    if raw is None:
        raise ExtractionError("No SQL content extracted: renderer returned nothing")

    text = SQL_MARKER_PATTERN.sub("", str(raw))
    text = normalize_whitespace(text).strip()
    while text.endswith(";"):
        text = text[:-1].rstrip()

    if not text:
        raise ExtractionError(f"No SQL content extracted from {raw!r}")
    return text
