"""⚡ Lake execution - run pipelines as DELETE / UPDATE / INSERT / upsert.

The kind of mutation is read from the shape of the pipeline's SQL:
- filter only                    -> DELETE the rows that do NOT match
- CASE WHEN rewrites             -> UPDATE (keeping any filter as WHERE)
- anything else                  -> INSERT the selected rows

Example:
    # keep only active customers
    lake_exec(engine.table("customers").filter("status = 'active'"))

    # correct a value
    lake_exec(
        engine.table("orders").mutate(
            status=if_else("id = 42", lit("shipped"), "status")
        )
    )

    # filter + plain rewrite must be marked as an update explicitly
    lake_exec(
        engine.table("orders").filter("id = 42").mutate(status=lit("shipped")),
        operation="update",
    )
"""

from __future__ import annotations

import warnings
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.text import Text

from duckledger.engine.duckdb import console
from duckledger.errors import ClassificationAmbiguity, LakeWarning
from duckledger.translate import (
    Classification,
    Operation,
    classify,
    extract_sql,
    parse_select,
    synthesize,
    synthesize_upsert,
)

if TYPE_CHECKING:
    from duckledger.engine.duckdb import LakeEngine


@dataclass(frozen=True)
class Translation:
    """A synthesized statement and how it was derived."""

    target: str
    kind: str
    statement: str
    rendered: str
    classification: Classification | None = None

    @property
    def operation(self) -> Operation | None:
        return self.classification.operation if self.classification else None

    @property
    def ambiguous(self) -> bool:
        return bool(self.classification and self.classification.ambiguous)


def resolve_target(pipeline: Any, table_name: str | None = None) -> str:
    """Explicit table name, else the one carried by the pipeline."""
    target = table_name or getattr(pipeline, "target", None)
    if not target:
        raise ValueError(
            "table_name must be provided either as an argument or via engine.table()"
        )
    return target


def resolve_engine(pipeline: Any, engine: "LakeEngine | None" = None) -> "LakeEngine":
    engine = engine or getattr(pipeline, "engine", None)
    if engine is None:
        raise ValueError("engine must be provided either as an argument or via engine.table()")
    return engine


def translate_query(
    pipeline: Any,
    table_name: str | None = None,
    operation: Operation | str | None = None,
    strict: bool = False,
) -> Translation:
    """Translate a pipeline into a mutating statement without running it.

    Args:
        pipeline: LakeQuery, DuckDB relation or SELECT text
        table_name: Target table (default: the pipeline's own target)
        operation: Force "delete", "update" or "insert" instead of classifying
        strict: Raise ClassificationAmbiguity instead of warning

    Returns:
        Translation with the statement and the classification behind it
    """
    target = resolve_target(pipeline, table_name)
    rendered = extract_sql(pipeline)
    query = parse_select(rendered)

    if operation is not None:
        classification = Classification(Operation.coerce(operation), rule=0)
    else:
        classification = classify(query)
        if classification.ambiguous:
            message = (
                "Filtered query also rewrites columns without CASE WHEN; "
                f"treating it as DELETE. Pass operation='update' to update instead: {rendered}"
            )
            if strict:
                raise ClassificationAmbiguity(message)
            warnings.warn(message, LakeWarning, stacklevel=3)

    statement = synthesize(classification.operation, query, target)
    return Translation(
        target=target,
        kind=classification.operation.value,
        statement=statement,
        rendered=rendered,
        classification=classification,
    )


def translate_upsert(
    pipeline: Any,
    by: Sequence[str] | str,
    table_name: str | None = None,
    columns: Sequence[str] | None = None,
) -> Translation:
    """Translate a pipeline into ``INSERT ... ON CONFLICT (by) DO UPDATE``.

    ``columns`` names the target columns the SELECT fills, for pipelines
    that carry only some of the table's columns.
    """
    target = resolve_target(pipeline, table_name)
    rendered = extract_sql(pipeline)
    statement = synthesize_upsert(parse_select(rendered), target, by, columns=columns)
    return Translation(target=target, kind="upsert", statement=statement, rendered=rendered)


def _show(title: str, sql: str) -> None:
    console.print(Panel(Text(sql), title=title, title_align="left"))


def lake_exec(
    pipeline: Any,
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
    operation: Operation | str | None = None,
    quiet: bool | None = None,
    strict: bool | None = None,
) -> int:
    """Translate ``pipeline`` and execute the statement once.

    Returns:
        Number of affected rows

    Raises:
        ExecutionError: the engine rejected the statement
    """
    engine = resolve_engine(pipeline, engine)
    quiet = engine.quiet if quiet is None else quiet
    strict = engine.strict if strict is None else strict

    translation = translate_query(pipeline, table_name, operation=operation, strict=strict)
    if not quiet:
        _show("Original SQL", translation.rendered)
        _show(f"Translated SQL ({translation.kind})", translation.statement)

    affected = engine.execute_mutation(translation.statement)

    if not quiet:
        console.print(f"Rows affected: {affected}")
    return affected


def upsert_table(
    pipeline: Any,
    by: Sequence[str] | str,
    table_name: str | None = None,
    engine: "LakeEngine | None" = None,
    quiet: bool | None = None,
    columns: Sequence[str] | None = None,
) -> int:
    """Insert the pipeline's rows, updating rows whose ``by`` key already exists.

    The target table must declare a PRIMARY KEY or UNIQUE constraint on ``by``.
    Pass ``columns`` when the pipeline fills only some of the target's columns.
    """
    engine = resolve_engine(pipeline, engine)
    quiet = engine.quiet if quiet is None else quiet

    translation = translate_upsert(pipeline, by, table_name, columns=columns)
    if not quiet:
        _show("Source SQL", translation.rendered)
        _show("Generated UPSERT SQL", translation.statement)

    affected = engine.execute_mutation(translation.statement)

    if not quiet:
        console.print(f"Rows affected: {affected}")
    return affected


def show_lake_query(
    pipeline: Any,
    table_name: str | None = None,
    operation: Operation | str | None = None,
) -> Any:
    """Print the statement ``lake_exec`` would run, and return the pipeline."""
    translation = translate_query(pipeline, table_name, operation=operation)
    console.print("\n=== DuckLake SQL Preview ===")
    console.print(f"\n-- Main operation ({translation.kind})")
    console.print(f"{translation.statement};", markup=False, highlight=False)
    return pipeline
