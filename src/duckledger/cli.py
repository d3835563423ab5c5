#!/usr/bin/env python3
"""
🦆 duckledger CLI - audited mutations for DuckLake tables.

Usage:
    duckledger preview <sql> --table T     Show the mutation a SELECT translates to
    duckledger snapshots                   List snapshots of the configured lake
    duckledger backup <name> <lake> <dst>  Copy a lake's catalog and data files
    duckledger --help                      Show help
"""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from duckledger.errors import DuckLedgerError

console = Console()


def preview(sql: str, table: str, operation: str | None = None) -> None:
    """Translate a SELECT and print the resulting statement."""
    from duckledger.core.exec import translate_query

    try:
        translation = translate_query(sql, table, operation=operation)
    except (DuckLedgerError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(
        Panel(
            Text(translation.statement),
            title=f"🦆 {translation.kind.upper()}",
            border_style="green",
        )
    )


def show_snapshots(lake: str | None, path: Path | None, table: str | None) -> None:
    """List snapshots with their audit metadata."""
    from duckledger.core.time_travel import list_snapshots
    from duckledger.engine import LakeEngine

    engine = LakeEngine.from_env()
    if lake:
        engine.lake_name = lake
    if path:
        engine.lake_path = path
    if not engine.lake_name:
        console.print("[red]Error:[/red] no lake given (use --lake or DUCKLEDGER_LAKE_NAME)")
        sys.exit(1)

    try:
        snapshots = list_snapshots(engine, table_name=table)
    except DuckLedgerError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        engine.close()

    columns = ("snapshot_id", "snapshot_time", "author", "commit_message")
    grid = Table(title=f"📜 Snapshots of {engine.lake_name}")
    for column in columns:
        grid.add_column(column)
    for _, row in snapshots.iterrows():
        grid.add_row(*(str(row.get(c, "")) for c in columns))
    console.print(grid)


def backup(name: str, lake_path: Path, backup_path: Path) -> None:
    """Back up a lake directory."""
    from duckledger.core.backup import backup_lake

    try:
        backup_dir = backup_lake(name, lake_path, backup_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    console.print(f"[green]✓[/green] Backup written to [cyan]{backup_dir}[/cyan]")


def main() -> None:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="duckledger",
        description="🦆 duckledger - audited mutations for DuckLake tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  duckledger preview "SELECT * FROM t WHERE id <> 2" --table t
  duckledger snapshots --lake my_lake --path ./lake
  duckledger backup my_lake ./lake ./backups
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # preview command
    preview_parser = subparsers.add_parser("preview", help="Translate a SELECT into a mutation")
    preview_parser.add_argument("sql", help="SELECT statement produced by a pipeline")
    preview_parser.add_argument("--table", "-t", required=True, help="Target table")
    preview_parser.add_argument(
        "--operation",
        "-o",
        choices=["delete", "update", "insert"],
        help="Force an operation instead of classifying",
    )

    # snapshots command
    snapshots_parser = subparsers.add_parser("snapshots", help="List lake snapshots")
    snapshots_parser.add_argument("--lake", "-l", help="Lake name")
    snapshots_parser.add_argument("--path", "-p", type=Path, help="Lake directory")
    snapshots_parser.add_argument("--table", "-t", help="Only snapshots touching this table")

    # backup command
    backup_parser = subparsers.add_parser("backup", help="Back up a lake")
    backup_parser.add_argument("name", help="Lake name")
    backup_parser.add_argument("lake_path", type=Path, help="Lake directory")
    backup_parser.add_argument("backup_path", type=Path, help="Where to write the backup")

    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")

    args = parser.parse_args()

    if args.command == "preview":
        preview(args.sql, args.table, args.operation)
    elif args.command == "snapshots":
        show_snapshots(args.lake, args.path, args.table)
    elif args.command == "backup":
        backup(args.name, args.lake_path, args.backup_path)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
