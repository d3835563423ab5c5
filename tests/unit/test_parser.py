"""🧪 Tests for the SELECT parser."""

import pytest

from duckledger.errors import SynthesisError
from duckledger.translate import ItemKind, parse_projection_item, parse_select


class TestProjectionItems:
    """Tests for tagging individual SELECT-list entries."""

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("*", ItemKind.STAR),
            ("t.*", ItemKind.STAR),
            ("id", ItemKind.BARE),
            ("CAST(a AS INTEGER)", ItemKind.BARE),
            ("'done' AS status", ItemKind.ALIASED),
            ("CAST(a AS INTEGER) AS b", ItemKind.ALIASED),
            ("CASE WHEN id = 1 THEN 'x' ELSE s END AS s", ItemKind.CONDITIONAL),
            ("case when id = 1 then 'x' end as s", ItemKind.CONDITIONAL),
        ],
    )
    def test_kinds(self, text, kind):
        assert parse_projection_item(text).kind is kind

    def test_aliased_parts(self):
        item = parse_projection_item("CAST(a AS INTEGER) AS b")
        assert item.expression == "CAST(a AS INTEGER)"
        assert item.alias == "b"
        assert item.column_name == "b"

    def test_case_when_inside_literal_is_not_conditional(self):
        item = parse_projection_item("'CASE WHEN' AS label")
        assert item.kind is ItemKind.ALIASED

    def test_quoted_alias(self):
        assert parse_projection_item('upper(s) AS "status"').column_name == "status"
        assert parse_projection_item('a + 1 AS "my col"').column_name == '"my col"'

    def test_qualified_bare_column_name(self):
        assert parse_projection_item("t.id").column_name == "id"

    def test_star_has_no_column_name(self):
        assert parse_projection_item("*").column_name is None

    def test_conditional_without_alias(self):
        with pytest.raises(SynthesisError, match="no alias"):
            parse_projection_item("CASE WHEN a THEN 1 END")


class TestParseSelect:
    """Tests for splitting SELECT / FROM / WHERE."""

    def test_basic_shape(self):
        query = parse_select("SELECT id, 'done' AS status FROM T WHERE id = 1")
        assert [i.kind for i in query.projection] == [ItemKind.BARE, ItemKind.ALIASED]
        assert query.source == "T"
        assert query.predicate == "id = 1"
        assert query.has_where
        assert not query.is_whole_row
        assert query.has_unconditional_rewrite

    def test_lowercase_keywords(self):
        query = parse_select("select * from t where x = 1")
        assert query.is_whole_row
        assert query.predicate == "x = 1"

    def test_commas_inside_calls_and_literals(self):
        query = parse_select("SELECT coalesce(a, b) AS c, 'x, y' AS d, e FROM t")
        assert [i.text for i in query.projection] == [
            "coalesce(a, b) AS c",
            "'x, y' AS d",
            "e",
        ]

    def test_conditional_with_comma_in_literal(self):
        query = parse_select("SELECT CASE WHEN id = 1 THEN 'x, y' ELSE s END AS s FROM t")
        assert len(query.projection) == 1
        item = query.projection[0]
        assert item.kind is ItemKind.CONDITIONAL
        assert item.expression == "CASE WHEN id = 1 THEN 'x, y' ELSE s END"
        assert query.has_conditional

    def test_keywords_inside_subquery_are_ignored(self):
        query = parse_select("SELECT * FROM (SELECT * FROM t WHERE a = 1) q")
        assert query.source == "(SELECT * FROM t WHERE a = 1) q"
        assert query.predicate is None

    def test_keyword_inside_literal(self):
        query = parse_select("SELECT 'FROM' AS x FROM t WHERE y = 'WHERE'")
        assert query.source == "t"
        assert query.predicate == "y = 'WHERE'"

    def test_predicate_kept_verbatim(self):
        query = parse_select("SELECT * FROM t WHERE (id > 1) AND (name <> 'a  b')")
        assert query.predicate == "(id > 1) AND (name <> 'a  b')"

    @pytest.mark.parametrize(
        "sql,message",
        [
            ("UPDATE t SET a = 1", "starting with SELECT"),
            ("SELECT 1", "no FROM"),
            ("SELECT FROM t", "SELECT list is empty"),
            ("SELECT a FROM", "names no relation"),
            ("SELECT * FROM t WHERE", "no predicate"),
            ("SELECT a, , b FROM t", "Empty projection item"),
            ("SELECT (a FROM t", "Unbalanced"),
            ("SELECT a) FROM t", "Unbalanced"),
            ("SELECT 'abc FROM t", "Unterminated"),
        ],
    )
    def test_malformed(self, sql, message):
        with pytest.raises(SynthesisError, match=message):
            parse_select(sql)


class TestSourceAlias:
    """Tests for aliased single-table sources."""

    @pytest.mark.parametrize(
        "source,alias",
        [
            ('"T" AS "t0"', '"t0"'),
            ("lake.main.orders AS o", "o"),
            ("T", None),
            ("T AT (VERSION => 3)", None),
            ("(SELECT * FROM t) AS q", None),
        ],
    )
    def test_source_alias(self, source, alias):
        assert parse_select(f"SELECT * FROM {source}").source_alias == alias
