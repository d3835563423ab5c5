"""💾 Backups - copy a lake's catalog file and data directory.

A lake on disk is ``<lake_path>/<name>.ducklake`` (the catalog) plus
``<lake_path>/main/`` (Parquet files). Restoring is attaching the backup
directory under the same lake name.

Detach the lake (or at least commit) before backing up so the catalog file
is consistent.
"""

from __future__ import annotations

import shutil
import warnings
from datetime import datetime
from pathlib import Path

from duckledger.errors import LakeWarning


def backup_lake(
    lake_name: str,
    lake_path: str | Path,
    backup_path: str | Path,
) -> Path:
    """Copy a lake into ``backup_path/backup_<YYYYmmdd_HHMMSS>/``.

    Returns:
        The backup directory

    Example:
        backup_dir = backup_lake("my_lake", "/data/lake", "/backups")
        engine = LakeEngine(lake_name="my_lake", lake_path=backup_dir)
    """
    if not isinstance(lake_name, str) or not lake_name:
        raise ValueError("lake_name must be a non-empty string")
    lake_path = Path(lake_path)
    if not lake_path.is_dir():
        raise FileNotFoundError(f"lake_path does not exist: {lake_path}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_dir = Path(backup_path) / f"backup_{timestamp}"
    backup_dir.mkdir(parents=True, exist_ok=True)

    catalog_file = lake_path / f"{lake_name}.ducklake"
    if catalog_file.exists():
        shutil.copy2(catalog_file, backup_dir / catalog_file.name)
        print("📒 Catalog backed up")
    else:
        warnings.warn(f"Catalog file not found: {catalog_file}", LakeWarning, stacklevel=2)

    data_dir = lake_path / "main"
    if data_dir.is_dir():
        shutil.copytree(data_dir, backup_dir / "main", dirs_exist_ok=True)
        print("🗂️ Data files backed up")
    else:
        warnings.warn(f"Data directory not found: {data_dir}", LakeWarning, stacklevel=2)

    print(f"💾 Backup completed: {backup_dir}")
    return backup_dir
