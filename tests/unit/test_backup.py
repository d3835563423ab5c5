"""🧪 Tests for lake backups."""

import pytest

from duckledger.core.backup import backup_lake
from duckledger.errors import LakeWarning


@pytest.fixture
def lake_dir(tmp_path):
    lake = tmp_path / "lake"
    (lake / "main" / "cars").mkdir(parents=True)
    (lake / "my_lake.ducklake").write_bytes(b"catalog")
    (lake / "main" / "cars" / "part-0.parquet").write_bytes(b"data")
    return lake


class TestBackupLake:
    """Tests for backup_lake()."""

    def test_copies_catalog_and_data(self, lake_dir, tmp_path):
        backup_dir = backup_lake("my_lake", lake_dir, tmp_path / "backups")
        assert backup_dir.parent == tmp_path / "backups"
        assert backup_dir.name.startswith("backup_")
        assert (backup_dir / "my_lake.ducklake").read_bytes() == b"catalog"
        assert (backup_dir / "main" / "cars" / "part-0.parquet").read_bytes() == b"data"

    def test_prints_progress(self, lake_dir, tmp_path, capsys):
        backup_lake("my_lake", lake_dir, tmp_path / "backups")
        out = capsys.readouterr().out
        assert "Catalog backed up" in out
        assert "Backup completed" in out

    def test_missing_catalog_warns(self, lake_dir, tmp_path):
        (lake_dir / "my_lake.ducklake").unlink()
        with pytest.warns(LakeWarning, match="Catalog file not found"):
            backup_dir = backup_lake("my_lake", lake_dir, tmp_path / "backups")
        assert (backup_dir / "main").is_dir()

    def test_missing_lake_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            backup_lake("my_lake", tmp_path / "nowhere", tmp_path / "backups")

    def test_lake_name_required(self, lake_dir, tmp_path):
        with pytest.raises(ValueError):
            backup_lake("", lake_dir, tmp_path / "backups")
