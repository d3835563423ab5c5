"""🔗 Lazy query pipeline over a lake table.

A ``LakeQuery`` records filter/select/rename/mutate steps and renders them as
one flat SELECT. Nothing runs until ``collect()``.

Example:
    q = (
        engine.table("orders")
        .filter("status = 'pending'")
        .mutate(status=lit("processed"))
    )
    print(q.sql())
    # SELECT id, 'processed' AS status FROM orders WHERE status = 'pending'
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from .expressions import quote_ident, to_sql

if TYPE_CHECKING:
    import pandas as pd

    from duckledger.engine.duckdb import LakeEngine


@dataclass(frozen=True)
class Projection:
    """One output column: its name and the SQL that produces it."""

    name: str
    expression: str

    def render(self) -> str:
        if self.expression == quote_ident(self.name):
            return self.expression
        return f"{self.expression} AS {quote_ident(self.name)}"


@dataclass(frozen=True)
class LakeQuery:
    """Immutable pipeline bound to a source relation.

    ``target`` is the table mutations apply to; it is set when the query comes
    from ``LakeEngine.table()`` and can be cleared with ``without_target()``.
    """

    source: str
    columns: tuple[str, ...]
    engine: "LakeEngine | None" = field(default=None, repr=False, compare=False)
    target: str | None = None
    predicates: tuple[str, ...] = ()
    projection: tuple[Projection, ...] | None = None

    @classmethod
    def from_sql_source(
        cls,
        source: str,
        columns: list[str] | tuple[str, ...],
        engine: "LakeEngine | None" = None,
        target: str | None = None,
    ) -> "LakeQuery":
        """Build a pipeline without introspecting an engine."""
        return cls(source=source, columns=tuple(columns), engine=engine, target=target)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def filter(self, *predicates: str) -> "LakeQuery":
        """Keep rows matching every predicate (SQL text)."""
        cleaned = tuple(p.strip() for p in predicates if p and p.strip())
        if not cleaned:
            raise ValueError("filter() needs at least one predicate")
        return replace(self, predicates=self.predicates + cleaned)

    def select(self, *columns: str) -> "LakeQuery":
        """Project the given columns, in order."""
        if not columns:
            raise ValueError("select() needs at least one column")
        current = {p.name: p for p in self._current_projection()}
        missing = [c for c in columns if c not in current]
        if missing:
            raise KeyError(f"Unknown column(s): {', '.join(missing)}")
        return replace(self, projection=tuple(current[c] for c in columns))

    def rename(self, **mapping: str) -> "LakeQuery":
        """Rename columns: ``rename(new_name="old_name")``."""
        by_old = {old: new for new, old in mapping.items()}
        current = self._current_projection()
        missing = [old for old in by_old if old not in {p.name for p in current}]
        if missing:
            raise KeyError(f"Unknown column(s): {', '.join(missing)}")

        renamed = tuple(
            Projection(by_old[p.name], p.expression) if p.name in by_old else p
            for p in current
        )
        return replace(self, projection=renamed)

    def mutate(self, **assignments: Any) -> "LakeQuery":
        """Replace or add columns.

        ``str`` values are SQL expressions; other values become literals.
        Expressions refer to source columns.
        """
        if not assignments:
            raise ValueError("mutate() needs at least one assignment")

        items = list(self._current_projection())
        positions = {p.name: i for i, p in enumerate(items)}
        for name, value in assignments.items():
            projection = Projection(name, to_sql(value))
            if name in positions:
                items[positions[name]] = projection
            else:
                positions[name] = len(items)
                items.append(projection)
        return replace(self, projection=tuple(items))

    def without_target(self) -> "LakeQuery":
        return replace(self, target=None)

    def with_target(self, target: str) -> "LakeQuery":
        return replace(self, target=target)

    # ------------------------------------------------------------------
    # Rendering / execution
    # ------------------------------------------------------------------

    @property
    def output_columns(self) -> list[str]:
        return [p.name for p in self._current_projection()]

    def where_clause(self) -> str | None:
        if not self.predicates:
            return None
        if len(self.predicates) == 1:
            return self.predicates[0]
        return " AND ".join(f"({p})" for p in self.predicates)

    def sql(self) -> str:
        """Render the pipeline as a single SELECT statement."""
        if self.projection is None:
            select_list = "*"
        else:
            select_list = ", ".join(p.render() for p in self.projection)

        sql = f"SELECT {select_list} FROM {self.source}"
        where = self.where_clause()
        if where:
            sql += f" WHERE {where}"
        return sql

    def collect(self) -> "pd.DataFrame":
        """Run the query and return a DataFrame."""
        return self._require_engine().query(self.sql())

    def show_query(self) -> "LakeQuery":
        """Print the rendered SQL and return self."""
        from duckledger.engine.duckdb import console

        console.print("[bold]<SQL>[/bold]")
        console.print(self.sql(), markup=False, highlight=False)
        return self

    def _current_projection(self) -> tuple[Projection, ...]:
        if self.projection is not None:
            return self.projection
        return tuple(Projection(c, quote_ident(c)) for c in self.columns)

    def _require_engine(self) -> "LakeEngine":
        if self.engine is None:
            raise RuntimeError(
                f"LakeQuery over {self.source} is not bound to an engine; "
                "build it with engine.table()"
            )
        return self.engine

    def __str__(self) -> str:
        return self.sql()
