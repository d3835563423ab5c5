"""🔁 Translation - rendered SELECT text to mutating SQL.

Pipeline:
    extract_sql()   pipeline -> normalized SELECT text
    parse_select()  text -> SelectQuery (typed projection items)
    classify()      SelectQuery -> Operation
    synthesize()    Operation + SelectQuery -> DELETE / UPDATE / INSERT
"""

from .classifier import Classification, Operation, classify
from .extractor import extract_sql, normalize_whitespace, render_sql
from .parser import ItemKind, ProjectionItem, SelectQuery, parse_projection_item, parse_select
from .synthesizer import (
    column_assignments,
    projected_columns,
    synthesize,
    synthesize_delete,
    synthesize_insert,
    synthesize_update,
    synthesize_upsert,
)

__all__ = [
    # Extraction
    "extract_sql",
    "normalize_whitespace",
    "render_sql",
    # Parsing
    "ItemKind",
    "ProjectionItem",
    "SelectQuery",
    "parse_projection_item",
    "parse_select",
    # Classification
    "Classification",
    "Operation",
    "classify",
    # Synthesis
    "column_assignments",
    "projected_columns",
    "synthesize",
    "synthesize_delete",
    "synthesize_insert",
    "synthesize_update",
    "synthesize_upsert",
]
