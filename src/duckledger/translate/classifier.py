"""🏷️ Operation classification - decide what a rendered query means to mutate.

Decision table, first match wins:

    1. WHERE and whole-row (*) projection     -> DELETE
    2. CASE WHEN anywhere in the projection   -> UPDATE
    3. WHERE with any other projection        -> DELETE
    4. otherwise                              -> INSERT

A filter means "keep these rows", so DELETE removes the complement.

Known limitation: a filter combined with plain (non CASE) column rewrites
lands on rule 3 and is classified DELETE. Such results are flagged
``ambiguous``; pass ``operation="update"`` to execute them as an UPDATE.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .parser import SelectQuery


class Operation(str, Enum):
    DELETE = "delete"
    UPDATE = "update"
    INSERT = "insert"

    @classmethod
    def coerce(cls, value: "Operation | str") -> "Operation":
        if isinstance(value, Operation):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(op.value for op in cls)
            raise ValueError(f"Unknown operation {value!r}; expected one of: {valid}") from None


@dataclass(frozen=True)
class Classification:
    operation: Operation
    rule: int
    ambiguous: bool = False


def classify(query: SelectQuery) -> Classification:
    """Classify a parsed SELECT."""
    if query.has_where and query.is_whole_row:
        return Classification(Operation.DELETE, rule=1)
    if query.has_conditional:
        return Classification(Operation.UPDATE, rule=2)
    if query.has_where:
        return Classification(
            Operation.DELETE,
            rule=3,
            ambiguous=query.has_unconditional_rewrite,
        )
    return Classification(Operation.INSERT, rule=4)
