"""🐤 Core lake operations.

Mutations from pipelines, transactions with snapshot metadata, table and
row helpers, time travel and backups.

Note: everything takes an explicit engine:
    from duckledger import LakeEngine
    engine = LakeEngine(lake_name="my_lake", lake_path="/data/lake")
    lake_exec(engine.table("cars").filter("mpg > 20"))
"""

from duckledger.core.backup import backup_lake
from duckledger.core.exec import (
    Translation,
    lake_exec,
    show_lake_query,
    translate_query,
    translate_upsert,
    upsert_table,
)
from duckledger.core.metadata import SnapshotMetadataRecorder, set_snapshot_metadata
from duckledger.core.rows import rows_delete, rows_insert, rows_update, rows_upsert
from duckledger.core.tables import create_table, get_metadata_table, get_table, replace_table
from duckledger.core.time_travel import (
    get_table_asof,
    get_table_version,
    list_snapshots,
    restore_table_version,
)
from duckledger.core.transactions import (
    TransactionManager,
    TransactionOutcome,
    TransactionState,
    begin_transaction,
    commit_transaction,
    rollback_transaction,
    with_transaction,
)

__all__ = [
    # Execution
    "Translation",
    "lake_exec",
    "show_lake_query",
    "translate_query",
    "translate_upsert",
    "upsert_table",
    # Transactions
    "TransactionManager",
    "TransactionOutcome",
    "TransactionState",
    "begin_transaction",
    "commit_transaction",
    "rollback_transaction",
    "with_transaction",
    # Metadata
    "SnapshotMetadataRecorder",
    "set_snapshot_metadata",
    # Tables
    "create_table",
    "get_metadata_table",
    "get_table",
    "replace_table",
    # Rows
    "rows_delete",
    "rows_insert",
    "rows_update",
    "rows_upsert",
    # Time travel
    "get_table_asof",
    "get_table_version",
    "list_snapshots",
    "restore_table_version",
    # Backups
    "backup_lake",
]
