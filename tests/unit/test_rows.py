"""🧪 Tests for keyed row operations."""

import pandas as pd
import pyarrow as pa
import pytest

from duckledger.core.rows import rows_delete, rows_insert, rows_update, rows_upsert
from duckledger.core.tables import create_table
from duckledger.errors import RowMatchError


@pytest.fixture
def items(engine):
    create_table(
        engine,
        pd.DataFrame({"id": [1, 2, 3], "label": ["a", "b", "c"], "status": ["old"] * 3}),
        "items",
    )
    return engine.table("items")


class TestRowsUpdate:
    """Tests for rows_update()."""

    def test_updates_matched_rows_only(self, items, fetch_rows):
        y = pd.DataFrame({"id": [1, 3], "label": ["ua", "uc"], "status": ["new", "new"]})
        assert rows_update(items, y, by="id") == 2
        assert fetch_rows("items") == [
            (1, "ua", "new"),
            (2, "b", "old"),
            (3, "uc", "new"),
        ]

    def test_subset_of_columns(self, items, fetch_rows):
        rows_update(items, pd.DataFrame({"id": [2], "status": ["new"]}))
        assert fetch_rows("items")[1] == (2, "b", "new")

    def test_arrow_input(self, items, fetch_rows):
        rows_update(items, pa.table({"id": [2], "label": ["x"]}), by="id")
        assert fetch_rows("items")[1] == (2, "x", "old")

    def test_unmatched_ignored_by_default(self, items, fetch_rows):
        assert rows_update(items, pd.DataFrame({"id": [9], "label": ["z"]})) == 0

    def test_unmatched_error(self, items):
        with pytest.raises(RowMatchError, match="no match"):
            rows_update(items, pd.DataFrame({"id": [9], "label": ["z"]}), unmatched="error")

    def test_keys_only(self, items):
        with pytest.raises(ValueError, match="no columns to update"):
            rows_update(items, pd.DataFrame({"id": [1]}))

    def test_missing_key_column(self, items):
        with pytest.raises(KeyError):
            rows_update(items, pd.DataFrame({"label": ["z"]}), by="id")

    def test_empty_y(self, items):
        assert rows_update(items, pd.DataFrame({"id": [], "label": []})) == 0


class TestRowsInsert:
    """Tests for rows_insert()."""

    def test_inserts_new_keys_only(self, items, fetch_rows):
        y = pd.DataFrame({"id": [2, 4], "label": ["dup", "d"], "status": ["new", "new"]})
        assert rows_insert(items, y, by="id") == 1
        result = fetch_rows("items")
        assert result[1] == (2, "b", "old")
        assert result[3] == (4, "d", "new")

    def test_conflict_error(self, items, fetch_rows):
        y = pd.DataFrame({"id": [2], "label": ["dup"], "status": ["new"]})
        with pytest.raises(RowMatchError, match="already exist"):
            rows_insert(items, y, conflict="error")
        assert len(fetch_rows("items")) == 3


class TestRowsDelete:
    """Tests for rows_delete()."""

    def test_deletes_matched_keys(self, items, fetch_rows):
        assert rows_delete(items, pd.DataFrame({"id": [1, 3]})) == 2
        assert fetch_rows("items") == [(2, "b", "old")]

    def test_unmatched_error(self, items, fetch_rows):
        with pytest.raises(RowMatchError):
            rows_delete(items, pd.DataFrame({"id": [1, 9]}), unmatched="error")
        assert len(fetch_rows("items")) == 3


class TestRowsUpsert:
    """Tests for rows_upsert()."""

    def test_inserts_and_updates(self, keyed, fetch_rows):
        y = pd.DataFrame({"v": ["b", "c"], "id": [1, 2]})
        rows_upsert(keyed, y, by="id")
        assert fetch_rows("K") == [(1, "b"), (2, "c")]

    def test_unknown_column(self, keyed):
        with pytest.raises(KeyError, match="not found in K"):
            rows_upsert(keyed, pd.DataFrame({"id": [1], "extra": [1]}), by="id")

    def test_subset_of_columns(self, engine, fetch_rows):
        engine.execute("CREATE TABLE W (id INTEGER PRIMARY KEY, a VARCHAR, b VARCHAR)")
        engine.execute("INSERT INTO W VALUES (1, 'a1', 'b1')")
        y = pd.DataFrame({"id": [1, 2], "b": ["b1-new", "b2"]})
        rows_upsert(engine.table("W"), y, by="id")
        assert fetch_rows("W") == [(1, "a1", "b1-new"), (2, None, "b2")]
