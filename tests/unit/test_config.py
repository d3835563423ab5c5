"""🧪 Tests for configuration and engine construction."""

from pathlib import Path

import duckdb

from duckledger.config import DuckDBConfig, LakeConfig, get_settings
from duckledger.engine import LakeEngine


class TestDuckDBConfig:
    """Tests for DuckDBConfig."""

    def test_defaults(self):
        config = DuckDBConfig()
        assert config.threads == 2
        assert config.memory_limit == "2GB"

    def test_to_duckdb_settings(self):
        settings = DuckDBConfig(threads=4, memory_limit="1GB").to_duckdb_settings()
        assert settings == {
            "memory_limit": "'1GB'",
            "threads": "4",
            "preserve_insertion_order": "true",
        }


class TestLakeConfig:
    """Tests for LakeConfig."""

    def test_from_yaml_with_lake_key(self, tmp_path):
        yaml_file = tmp_path / "lake.yaml"
        yaml_file.write_text(
            """
lake:
  lake_name: my_lake
  lake_path: /data/lake
  author: Data Team
  strict: true
  duckdb:
    threads: 8
"""
        )
        config = LakeConfig.from_yaml(yaml_file)
        assert config.lake_name == "my_lake"
        assert config.author == "Data Team"
        assert config.strict is True
        assert config.quiet is True
        assert config.duckdb.threads == 8

    def test_from_flat_yaml(self, tmp_path):
        yaml_file = tmp_path / "lake.yaml"
        yaml_file.write_text("lake_name: flat\n")
        assert LakeConfig.from_yaml(yaml_file).lake_name == "flat"


class TestSettings:
    """Tests for DUCKLEDGER_* environment settings."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.lake_name is None
        assert settings.quiet is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DUCKLEDGER_LAKE_NAME", "env_lake")
        monkeypatch.setenv("DUCKLEDGER_AUTHOR", "ci")
        monkeypatch.setenv("DUCKLEDGER_QUIET", "false")
        monkeypatch.setenv("DUCKLEDGER_THREADS", "3")
        get_settings.cache_clear()

        config = get_settings().to_lake_config()
        assert config.lake_name == "env_lake"
        assert config.author == "ci"
        assert config.quiet is False
        assert config.duckdb.threads == 3


class TestEngineConstruction:
    """Tests for building engines from config."""

    def test_from_config(self):
        engine = LakeEngine.from_config(
            LakeConfig(lake_name="my_lake", lake_path="/data/lake", author="ana", strict=True)
        )
        assert engine.lake_name == "my_lake"
        assert engine.lake_path == Path("/data/lake")
        assert engine.author == "ana"
        assert engine.strict is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DUCKLEDGER_LAKE_NAME", "env_lake")
        get_settings.cache_clear()
        assert LakeEngine.from_env().lake_name == "env_lake"

    def test_resource_settings_applied(self):
        engine = LakeEngine(resources=DuckDBConfig(threads=3))
        assert int(engine.fetch_value("SELECT current_setting('threads')")) == 3
        engine.close()

    def test_wrapped_connection_is_not_reattached(self, engine):
        assert engine.current_database() == "lake"
        assert "lake" in engine.attached_databases()

    def test_close_resets_state(self):
        conn = duckdb.connect()
        engine = LakeEngine.from_connection(conn)
        engine.begin()
        engine.close()
        assert engine._conn is None
        assert engine._transactions is None

    def test_context_manager_closes(self):
        with LakeEngine() as engine:
            engine.execute("SELECT 1")
        assert engine._conn is None
