"""🦆 DuckDB Lake Engine - one explicit connection handle per lake session.

Every operation in duckledger takes a ``LakeEngine`` instead of looking up
a hidden global connection. The engine owns:
- the DuckDB connection (created lazily, resource settings applied)
- the attached DuckLake catalog (``ATTACH 'ducklake:...' AS <name>``)
- mutation execution with statement-level error context
- the transaction state machine (``engine.transactions``)
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import duckdb
import pandas as pd
import pyarrow as pa
from rich.console import Console

from duckledger.config import DuckDBConfig, LakeConfig
from duckledger.errors import ExecutionError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from duckledger.core.transactions import TransactionManager
    from duckledger.query.ibis_table import IbisQuery
    from duckledger.query.pipeline import LakeQuery

console = Console(stderr=True)


class LakeEngine:
    """DuckDB engine with an optional DuckLake catalog attached.

    Example:
        engine = LakeEngine(lake_name="my_lake", lake_path="/data/lake")
        engine.table("orders").filter("status = 'open'").collect()

        with engine.transaction(author="ana", commit_message="close stale orders"):
            lake_exec(engine.table("orders").filter("age_days < 30"))
    """

    def __init__(
        self,
        lake_name: str | None = None,
        lake_path: str | Path | None = None,
        resources: DuckDBConfig | None = None,
        conn: duckdb.DuckDBPyConnection | None = None,
        author: str | None = None,
        quiet: bool = True,
        strict: bool = False,
    ):
        self.lake_name = lake_name
        self.lake_path = Path(lake_path) if lake_path is not None else None
        self.resources = resources or DuckDBConfig()
        self.author = author
        self.quiet = quiet
        self.strict = strict

        self._conn = conn
        self._attached = conn is not None and lake_name is not None
        self._transactions: "TransactionManager | None" = None
        self._ibis_con = None

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection."""
        if self._conn is None:
            self._conn = self._create_connection()
        if self.lake_name and not self._attached:
            self.attach(self.lake_name, self.lake_path)
        return self._conn

    def _create_connection(self) -> duckdb.DuckDBPyConnection:
        """Create a new DuckDB connection with resource limits applied."""
        conn = duckdb.connect()
        for key, value in self.resources.to_duckdb_settings().items():
            conn.execute(f"SET {key} = {value}")
        return conn

    @classmethod
    def from_config(cls, config: LakeConfig) -> "LakeEngine":
        return cls(
            lake_name=config.lake_name,
            lake_path=config.lake_path,
            resources=config.duckdb,
            author=config.author,
            quiet=config.quiet,
            strict=config.strict,
        )

    @classmethod
    def from_env(cls) -> "LakeEngine":
        """Create engine from ``DUCKLEDGER_*`` environment variables."""
        from duckledger.config import get_settings

        return cls.from_config(get_settings().to_lake_config())

    @classmethod
    def from_connection(
        cls,
        conn: duckdb.DuckDBPyConnection,
        lake_name: str | None = None,
        **kwargs: Any,
    ) -> "LakeEngine":
        """Wrap an existing connection (the lake, if any, is already attached)."""
        return cls(lake_name=lake_name, conn=conn, **kwargs)

    # ------------------------------------------------------------------
    # Lake lifecycle
    # ------------------------------------------------------------------

    def install_extension(self, name: str = "ducklake") -> None:
        """Install and load a DuckDB extension."""
        conn = self._ensure_raw_connection()
        conn.execute(f"INSTALL {name}")
        conn.execute(f"LOAD {name}")

    def _ensure_raw_connection(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = self._create_connection()
        return self._conn

    def attached_databases(self) -> list[str]:
        rows = self._ensure_raw_connection().execute(
            "SELECT database_name FROM duckdb_databases()"
        ).fetchall()
        return [r[0] for r in rows]

    def attach(self, lake_name: str, lake_path: str | Path | None = None) -> None:
        """Create or attach a DuckLake and make it the default database.

        Without ``lake_path`` the catalog is ``<lake_name>.ducklake`` in the
        working directory; with it, both the catalog file and the Parquet
        data files live in ``lake_path``.
        """
        conn = self._ensure_raw_connection()

        if lake_name in self.attached_databases():
            conn.execute(f"USE {lake_name}")
        else:
            self.install_extension("ducklake")
            if lake_path is None:
                conn.execute(f"ATTACH 'ducklake:{lake_name}.ducklake' AS {lake_name}")
            else:
                lake_dir = Path(lake_path)
                lake_dir.mkdir(parents=True, exist_ok=True)
                catalog = lake_dir / f"{lake_name}.ducklake"
                conn.execute(
                    f"ATTACH 'ducklake:{catalog}' AS {lake_name} (DATA_PATH '{lake_dir}')"
                )
            conn.execute(f"USE {lake_name}")

        self.lake_name = lake_name
        self.lake_path = Path(lake_path) if lake_path is not None else self.lake_path
        self._attached = True
        self.say(f"🦆 Attached lake [cyan]{lake_name}[/cyan]")

    def detach(self) -> None:
        """Close the connection; the lake can be re-attached later."""
        self.close()
        self.say(f"🔌 Detached lake [cyan]{self.lake_name}[/cyan]")

    def current_database(self) -> str | None:
        return self.fetch_value("SELECT current_database()")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, sql: str, params: list[Any] | None = None) -> pd.DataFrame:
        """Execute a SQL query and return results as DataFrame."""
        return self.conn.execute(sql, params).df()

    def query_arrow(self, sql: str) -> pa.Table:
        """Execute a SQL query and return results as Arrow Table."""
        return self.conn.execute(sql).fetch_arrow_table()

    def fetch_value(self, sql: str, params: list[Any] | None = None) -> Any:
        """Execute a query expected to return a single scalar."""
        row = self.conn.execute(sql, params).fetchone()
        return None if row is None else row[0]

    def execute(self, sql: str, params: list[Any] | None = None) -> None:
        """Execute a SQL statement without returning results."""
        self.conn.execute(sql, params)

    def execute_mutation(self, sql: str, params: list[Any] | None = None) -> int:
        """Run a DELETE / UPDATE / INSERT and return the affected row count.

        Raises:
            ExecutionError: the engine rejected the statement (``.sql`` holds it)
        """
        try:
            row = self.conn.execute(sql, params).fetchone()
        except duckdb.Error as e:
            raise ExecutionError(f"Failed to execute lake mutation: {e}", sql) from e
        return int(row[0]) if row and row[0] is not None else 0

    def columns(self, relation: str) -> list[str]:
        """Column names of a table, view or registered DataFrame."""
        sql = f"SELECT * FROM {relation} LIMIT 0"
        try:
            description = self.conn.execute(sql).description
        except duckdb.Error as e:
            raise ExecutionError(f"Cannot read columns of {relation}: {e}", sql) from e
        return [d[0] for d in description]

    def table(self, name: str) -> "LakeQuery":
        """Lazy pipeline over ``name``; mutations default to that table."""
        from duckledger.query.pipeline import LakeQuery

        return LakeQuery(source=name, columns=tuple(self.columns(name)), engine=self, target=name)

    def ibis(self):
        """Ibis DuckDB backend sharing this engine's connection.

        Example:
            con = engine.ibis()
            con.list_tables()
        """
        if self._ibis_con is None:
            import ibis

            self._ibis_con = ibis.duckdb.from_connection(self.conn)
        return self._ibis_con

    def ibis_table(self, name: str) -> "IbisQuery":
        """Ibis expression over ``name``; mutations default to that table."""
        from duckledger.query.ibis_table import IbisQuery

        return IbisQuery(self.ibis().table(name), engine=self, target=name)

    def register(self, name: str, data: pd.DataFrame | pa.Table) -> None:
        self.conn.register(name, data)

    def unregister(self, name: str) -> None:
        self.conn.unregister(name)

    @contextmanager
    def registered(self, name: str, data: pd.DataFrame | pa.Table) -> "Iterator[str]":
        """Expose ``data`` as a temporary view for the duration of the block."""
        self.register(name, data)
        try:
            yield name
        finally:
            self.unregister(name)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def transactions(self) -> "TransactionManager":
        if self._transactions is None:
            from duckledger.core.transactions import TransactionManager

            self._transactions = TransactionManager(self)
        return self._transactions

    def begin(self) -> None:
        self.transactions.begin()

    def commit(
        self,
        author: str | None = None,
        commit_message: str | None = None,
        commit_extra_info: str | None = None,
    ) -> None:
        self.transactions.commit(
            author=author,
            commit_message=commit_message,
            commit_extra_info=commit_extra_info,
        )

    def rollback(self) -> None:
        self.transactions.rollback()

    def transaction(
        self,
        author: str | None = None,
        commit_message: str | None = None,
        commit_extra_info: str | None = None,
    ):
        """Context manager: commit on success, roll back on any exception."""
        return self.transactions.scope(
            author=author,
            commit_message=commit_message,
            commit_extra_info=commit_extra_info,
        )

    # ------------------------------------------------------------------

    def say(self, message: str) -> None:
        if not self.quiet:
            console.print(message)

    def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._attached = False
        self._transactions = None
        self._ibis_con = None

    def __enter__(self) -> "LakeEngine":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LakeEngine(lake={self.lake_name}, path={self.lake_path})"
