"""🧪 Tests for operation classification."""

import pytest

from duckledger.translate import Operation, classify, parse_select


def classified(sql):
    return classify(parse_select(sql))


class TestDecisionTable:
    """Each rule of the decision table, first match wins."""

    @pytest.mark.parametrize(
        "sql,operation,rule",
        [
            ("SELECT * FROM t WHERE a = 1", Operation.DELETE, 1),
            ("SELECT t.* FROM t WHERE a = 1", Operation.DELETE, 1),
            (
                "SELECT id, CASE WHEN a = 1 THEN 'x' ELSE b END AS b FROM t",
                Operation.UPDATE,
                2,
            ),
            (
                "SELECT id, CASE WHEN a = 1 THEN 'x' ELSE b END AS b FROM t WHERE id > 3",
                Operation.UPDATE,
                2,
            ),
            ("SELECT id, name FROM t WHERE id > 3", Operation.DELETE, 3),
            ("SELECT id, name FROM t", Operation.INSERT, 4),
            ("SELECT * FROM t", Operation.INSERT, 4),
            ("SELECT id, upper(name) AS name FROM t", Operation.INSERT, 4),
        ],
    )
    def test_rules(self, sql, operation, rule):
        result = classified(sql)
        assert result.operation is operation
        assert result.rule == rule

    def test_plain_projection_with_filter_is_not_ambiguous(self):
        assert not classified("SELECT id, name FROM t WHERE id > 3").ambiguous

    def test_whole_row_delete_is_not_ambiguous(self):
        assert not classified("SELECT * FROM t WHERE id > 3").ambiguous

    def test_filter_with_plain_rewrite_is_flagged(self):
        """A filter plus a non-CASE rewrite reads as DELETE, and says so."""
        result = classified("SELECT id, 'done' AS status FROM t WHERE id = 1")
        assert result.operation is Operation.DELETE
        assert result.rule == 3
        assert result.ambiguous

    def test_star_plus_rewrite_is_not_whole_row(self):
        result = classified("SELECT *, a * 2 AS b FROM t WHERE a > 1")
        assert result.rule == 3
        assert result.ambiguous

    def test_case_in_literal_does_not_make_update(self):
        result = classified("SELECT id, 'CASE WHEN x' AS note FROM t")
        assert result.operation is Operation.INSERT


class TestOperation:
    """Tests for Operation.coerce()."""

    def test_coerce(self):
        assert Operation.coerce("UPDATE") is Operation.UPDATE
        assert Operation.coerce(Operation.DELETE) is Operation.DELETE

    def test_coerce_unknown(self):
        with pytest.raises(ValueError, match="Unknown operation"):
            Operation.coerce("merge")
