"""⚙️ Configuration - Pydantic models and environment settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DuckDBConfig(BaseModel):
    """DuckDB-specific configuration."""

    threads: int = Field(default=2, ge=1, le=64)
    memory_limit: str = Field(default="2GB")
    preserve_insertion_order: bool = Field(default=True)

    def to_duckdb_settings(self) -> dict[str, str]:
        """Generate DuckDB SET statements."""
        return {
            "memory_limit": f"'{self.memory_limit}'",
            "threads": str(self.threads),
            "preserve_insertion_order": str(self.preserve_insertion_order).lower(),
        }


class LakeConfig(BaseModel):
    """Where a lake lives and how commits are annotated.

    Can be loaded from YAML or set programmatically.
    """

    lake_name: str | None = Field(
        default=None,
        description="Catalog name used in ATTACH ... AS <name>",
    )
    lake_path: str | None = Field(
        default=None,
        description="Directory holding <name>.ducklake and its Parquet files",
    )
    author: str | None = Field(
        default=None,
        description="Default author recorded on committed snapshots",
    )
    quiet: bool = Field(default=True, description="Suppress console output")
    strict: bool = Field(
        default=False,
        description="Raise instead of warn on ambiguous classification",
    )

    duckdb: DuckDBConfig = Field(default_factory=DuckDBConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "LakeConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data.get("lake", data))


class Settings(BaseSettings):
    """Environment-based settings (``DUCKLEDGER_*``)."""

    model_config = SettingsConfigDict(env_prefix="DUCKLEDGER_", case_sensitive=False)

    lake_name: str | None = Field(default=None)
    lake_path: str | None = Field(default=None)
    author: str | None = Field(default=None)
    quiet: bool = Field(default=True)
    strict: bool = Field(default=False)

    threads: int = Field(default=2, ge=1, le=64)
    memory_limit: str = Field(default="2GB")

    def to_lake_config(self) -> LakeConfig:
        return LakeConfig(
            lake_name=self.lake_name,
            lake_path=self.lake_path,
            author=self.author,
            quiet=self.quiet,
            strict=self.strict,
            duckdb=DuckDBConfig(threads=self.threads, memory_limit=self.memory_limit),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings from environment."""
    return Settings()
