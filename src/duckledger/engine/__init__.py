"""🦆 Lake Engine - DuckDB with the DuckLake extension.

One ``LakeEngine`` per connection; every operation receives it explicitly.
"""

from .duckdb import LakeEngine

__all__ = [
    "LakeEngine",
]
