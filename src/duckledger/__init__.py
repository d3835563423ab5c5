"""🦆 duckledger - audited mutations for DuckLake tables.

Quick Start:
    from duckledger import LakeEngine, if_else, lake_exec, lit, show_lake_query

    engine = LakeEngine(lake_name="my_lake", lake_path="/data/lake")

    # Keep only the rows matching a filter (DELETE the rest)
    with engine.transaction(author="ana", commit_message="drop test orders"):
        lake_exec(engine.table("orders").filter("customer <> 'test'"))

    # Correct values in place (UPDATE)
    lake_exec(
        engine.table("orders").mutate(status=if_else("id = 7", lit("shipped"), "status"))
    )

    # Preview without running
    show_lake_query(engine.table("orders").filter("amount > 0"))
"""

from duckledger.core import (
    backup_lake,
    begin_transaction,
    commit_transaction,
    create_table,
    get_metadata_table,
    get_table,
    get_table_asof,
    get_table_version,
    lake_exec,
    list_snapshots,
    replace_table,
    restore_table_version,
    rollback_transaction,
    rows_delete,
    rows_insert,
    rows_update,
    rows_upsert,
    set_snapshot_metadata,
    show_lake_query,
    translate_query,
    upsert_table,
    with_transaction,
)
from duckledger.engine import LakeEngine
from duckledger.errors import DuckLedgerError, LakeWarning
from duckledger.query import IbisQuery, LakeQuery, case_when, if_else, lit
from duckledger.translate import Operation

__version__ = "0.1.0"

__all__ = [
    "LakeEngine",
    "LakeQuery",
    "IbisQuery",
    "Operation",
    "DuckLedgerError",
    "LakeWarning",
    # Expressions
    "case_when",
    "if_else",
    "lit",
    # Execution
    "lake_exec",
    "show_lake_query",
    "translate_query",
    "upsert_table",
    # Transactions
    "begin_transaction",
    "commit_transaction",
    "rollback_transaction",
    "with_transaction",
    "set_snapshot_metadata",
    # Tables & rows
    "create_table",
    "get_metadata_table",
    "get_table",
    "replace_table",
    "rows_delete",
    "rows_insert",
    "rows_update",
    "rows_upsert",
    # History
    "get_table_asof",
    "get_table_version",
    "list_snapshots",
    "restore_table_version",
    "backup_lake",
    "__version__",
]
