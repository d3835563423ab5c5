"""📝 Snapshot metadata - author / message / extra info on the latest snapshot.

DuckLake keeps its catalog in a database named
``__ducklake_metadata_<lake>``. After a commit, the newest row of
``ducklake_snapshot`` is the snapshot the commit produced (if the engine
produced one), and its audit columns live in ``ducklake_snapshot_changes``.

This write is a separate statement after COMMIT: a crash in between leaves
a valid snapshot without annotations.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING

import duckdb

from duckledger.errors import LakeWarning, MetadataUpdateError

if TYPE_CHECKING:
    from duckledger.engine.duckdb import LakeEngine


def metadata_database(lake_name: str) -> str:
    return f"__ducklake_metadata_{lake_name}"


class SnapshotMetadataRecorder:
    """Annotate the most recent snapshot of a lake."""

    def __init__(self, engine: "LakeEngine"):
        self.engine = engine

    def resolve_lake_name(self, lake_name: str | None = None) -> str:
        """Explicit name, then the engine's attached lake, then current_database()."""
        name = lake_name or self.engine.lake_name or self.engine.current_database()
        if not name:
            raise MetadataUpdateError("Could not determine the lake name; pass it explicitly")
        return name

    def latest_snapshot_id(self, lake_name: str | None = None) -> int:
        catalog = metadata_database(self.resolve_lake_name(lake_name))
        sql = f"SELECT max(snapshot_id) FROM {catalog}.main.ducklake_snapshot"
        try:
            snapshot_id = self.engine.fetch_value(sql)
        except duckdb.Error as e:
            raise MetadataUpdateError(f"Cannot read snapshots from {catalog}: {e}") from e
        if snapshot_id is None:
            raise MetadataUpdateError(f"No snapshot exists yet in {catalog}")
        return int(snapshot_id)

    def record(
        self,
        lake_name: str | None = None,
        author: str | None = None,
        commit_message: str | None = None,
        commit_extra_info: str | None = None,
    ) -> int | None:
        """Write the supplied fields onto the latest snapshot.

        Returns:
            The annotated snapshot id, or None when no field was supplied.

        Raises:
            MetadataUpdateError: no snapshot exists, or the catalog rejected the update
        """
        fields = {
            "author": author,
            "commit_message": commit_message,
            "commit_extra_info": commit_extra_info,
        }
        fields = {k: v for k, v in fields.items() if v is not None}
        if not fields:
            warnings.warn("No metadata provided to set", LakeWarning, stacklevel=2)
            return None

        name = self.resolve_lake_name(lake_name)
        snapshot_id = self.latest_snapshot_id(name)
        catalog = metadata_database(name)

        set_clause = ", ".join(f"{column} = ?" for column in fields)
        sql = (
            f"UPDATE {catalog}.main.ducklake_snapshot_changes "
            f"SET {set_clause} WHERE snapshot_id = ?"
        )
        try:
            self.engine.execute(sql, [*fields.values(), snapshot_id])
        except duckdb.Error as e:
            raise MetadataUpdateError(
                f"Could not update metadata of snapshot {snapshot_id}: {e}"
            ) from e

        self.engine.say(f"🏷️ Snapshot [cyan]{snapshot_id}[/cyan] metadata updated")
        return snapshot_id


def set_snapshot_metadata(
    engine: "LakeEngine",
    lake_name: str | None = None,
    author: str | None = None,
    commit_message: str | None = None,
    commit_extra_info: str | None = None,
) -> int | None:
    """Annotate the most recent snapshot.

    Example:
        set_snapshot_metadata(engine, author="Data Team", commit_message="Rename stations")
    """
    return SnapshotMetadataRecorder(engine).record(
        lake_name=lake_name,
        author=author,
        commit_message=commit_message,
        commit_extra_info=commit_extra_info,
    )
