"""🔗 Lazy pipelines and SQL expression helpers."""

from .expressions import SQLExpr, case_when, if_else, lit, quote_ident, unquote_ident
from .ibis_table import IbisQuery
from .pipeline import LakeQuery, Projection

__all__ = [
    "IbisQuery",
    "LakeQuery",
    "Projection",
    "SQLExpr",
    "case_when",
    "if_else",
    "lit",
    "quote_ident",
    "unquote_ident",
]
