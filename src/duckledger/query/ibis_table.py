"""🐍 Ibis pipelines bound to a lake table.

Wraps an Ibis table expression and delegates all methods to it, while
remembering the engine and the table mutations should apply to.

Example:
    import ibis
    from ibis import _

    orders = engine.ibis_table("orders")
    lake_exec(orders.filter(_.status != "test"))
    lake_exec(orders.mutate(status=ibis.ifelse(_.id == 7, "shipped", _.status)))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import ibis.expr.types as ir
    import pandas as pd

    from duckledger.engine.duckdb import LakeEngine


class IbisQuery:
    """Ibis table expression carrying its engine and target table."""

    def __init__(self, expr: "ir.Table", engine: "LakeEngine", target: str | None = None):
        self._expr = expr
        self.engine = engine
        self.target = target

    @property
    def expr(self) -> "ir.Table":
        return self._expr

    def sql(self) -> str:
        """SQL text of the expression in the DuckDB dialect."""
        import ibis

        return ibis.to_sql(self._expr, dialect="duckdb")

    def execute(self) -> "pd.DataFrame":
        return self._expr.execute()

    def to_pandas(self) -> "pd.DataFrame":
        """Alias for execute() - returns DataFrame."""
        return self._expr.execute()

    def without_target(self) -> "IbisQuery":
        return IbisQuery(self._expr, self.engine, None)

    # Delegate all other methods to the underlying Ibis expression
    # and wrap the result if it is a table

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._expr, name)

        if callable(attr):
            def wrapper(*args, **kwargs):
                result = attr(*args, **kwargs)
                if hasattr(result, "execute") and hasattr(result, "filter"):
                    return IbisQuery(result, self.engine, self.target)
                return result
            return wrapper

        return attr

    def __repr__(self) -> str:
        return f"IbisQuery(target={self.target}, expr={self._expr})"
