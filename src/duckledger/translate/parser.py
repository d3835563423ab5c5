"""🌳 Parse rendered SELECT text into a small typed tree.

Only the flat shape pipelines emit is understood:

    SELECT <item>, <item>, ... FROM <source> [WHERE <predicate>]

Each projection item is tagged STAR, BARE, ALIASED or CONDITIONAL. The
original text of every piece is kept verbatim so statements can be
reassembled without re-rendering expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from duckledger.errors import SynthesisError
from duckledger.query.expressions import unquote_ident

KEYWORD_PATTERNS = {
    kw: re.compile(rf"\b{kw}\b", re.IGNORECASE) for kw in ("SELECT", "FROM", "WHERE")
}
ALIAS_PATTERN = re.compile(
    r'\s+AS\s+("(?:[^"]|"")+"|[A-Za-z_][A-Za-z0-9_]*)$', re.IGNORECASE
)
CASE_WHEN_PATTERN = re.compile(r"\bCASE\s+WHEN\b", re.IGNORECASE)
STAR_PATTERN = re.compile(r'^(?:(?:"(?:[^"]|"")+"|[A-Za-z_][A-Za-z0-9_]*)\.)*\*$')
SOURCE_ALIAS_PATTERN = re.compile(
    r'^((?:"(?:[^"]|"")+"|[A-Za-z_][A-Za-z0-9_]*)(?:\.(?:"(?:[^"]|"")+"|[A-Za-z_][A-Za-z0-9_]*))*)'
    r'\s+AS\s+("(?:[^"]|"")+"|[A-Za-z_][A-Za-z0-9_]*)$',
    re.IGNORECASE,
)


class ItemKind(str, Enum):
    STAR = "star"
    BARE = "bare"
    ALIASED = "aliased"
    CONDITIONAL = "conditional"


@dataclass(frozen=True)
class ProjectionItem:
    """One comma-separated entry of the SELECT list."""

    kind: ItemKind
    text: str
    expression: str
    alias: str | None = None

    @property
    def column_name(self) -> str | None:
        """Name of the output column (None for ``*``)."""
        if self.kind is ItemKind.STAR:
            return None
        if self.alias is not None:
            return unquote_ident(self.alias)
        return unquote_ident(_split_qualified(self.expression)[-1])

    @property
    def is_assignment(self) -> bool:
        return self.kind in (ItemKind.ALIASED, ItemKind.CONDITIONAL)


@dataclass(frozen=True)
class SelectQuery:
    """Parsed ``SELECT ... FROM ... [WHERE ...]``."""

    text: str
    projection: tuple[ProjectionItem, ...]
    source: str
    predicate: str | None = None

    @property
    def source_alias(self) -> str | None:
        """Alias of a single-table source (``"T" AS "t0"`` -> ``"t0"``)."""
        match = SOURCE_ALIAS_PATTERN.match(self.source)
        return match.group(2) if match else None

    @property
    def has_where(self) -> bool:
        return self.predicate is not None

    @property
    def is_whole_row(self) -> bool:
        return all(item.kind is ItemKind.STAR for item in self.projection)

    @property
    def has_conditional(self) -> bool:
        return any(item.kind is ItemKind.CONDITIONAL for item in self.projection)

    @property
    def has_unconditional_rewrite(self) -> bool:
        return any(item.kind is ItemKind.ALIASED for item in self.projection)


@dataclass(frozen=True)
class _Scan:
    """Per-character nesting depth and quote state."""

    depth: tuple[int, ...]
    quoted: tuple[bool, ...]

    def top_level(self, index: int) -> bool:
        return self.depth[index] == 0 and not self.quoted[index]


def _scan(text: str) -> _Scan:
    depth: list[int] = []
    quoted: list[bool] = []
    level = 0
    quote: str | None = None

    for ch in text:
        if quote is not None:
            depth.append(level)
            quoted.append(True)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
            depth.append(level)
            quoted.append(True)
            continue
        if ch == "(":
            depth.append(level)
            level += 1
        elif ch == ")":
            level -= 1
            if level < 0:
                raise SynthesisError("Unbalanced ')' in SQL", text)
            depth.append(level)
        else:
            depth.append(level)
        quoted.append(False)

    if quote is not None:
        raise SynthesisError("Unterminated quoted literal in SQL", text)
    if level != 0:
        raise SynthesisError("Unbalanced '(' in SQL", text)
    return _Scan(tuple(depth), tuple(quoted))


def _find_keyword(text: str, scan: _Scan, keyword: str, start: int = 0) -> re.Match | None:
    for match in KEYWORD_PATTERNS[keyword].finditer(text, start):
        if scan.top_level(match.start()):
            return match
    return None


def _split_top_level(text: str, sep: str = ",") -> list[str]:
    scan = _scan(text)
    parts, begin = [], 0
    for i, ch in enumerate(text):
        if ch == sep and scan.top_level(i):
            parts.append(text[begin:i])
            begin = i + 1
    parts.append(text[begin:])
    return [p.strip() for p in parts]


def _split_qualified(name: str) -> list[str]:
    return _split_top_level(name, ".")


def parse_projection_item(text: str) -> ProjectionItem:
    """Tag one SELECT-list entry."""
    text = text.strip()
    if not text:
        raise SynthesisError("Empty projection item in SELECT list")

    if STAR_PATTERN.match(text):
        return ProjectionItem(ItemKind.STAR, text, text)

    scan = _scan(text)
    alias_match = ALIAS_PATTERN.search(text)
    if alias_match and not scan.top_level(alias_match.start()):
        alias_match = None

    conditional = any(
        not scan.quoted[m.start()] for m in CASE_WHEN_PATTERN.finditer(text)
    )

    if alias_match is None:
        if conditional:
            raise SynthesisError("Conditional projection item has no alias", text)
        return ProjectionItem(ItemKind.BARE, text, text)

    expression = text[: alias_match.start()].strip()
    alias = alias_match.group(1)
    kind = ItemKind.CONDITIONAL if conditional else ItemKind.ALIASED
    return ProjectionItem(kind, text, expression, alias)


def parse_select(sql: str) -> SelectQuery:
    """Parse normalized SELECT text.

    Raises:
        SynthesisError: the text is not a SELECT shape we understand
    """
    text = sql.strip()
    scan = _scan(text)

    select = _find_keyword(text, scan, "SELECT")
    if select is None or select.start() != 0:
        raise SynthesisError("Expected a statement starting with SELECT", text)

    from_ = _find_keyword(text, scan, "FROM", select.end())
    if from_ is None:
        raise SynthesisError("SELECT has no FROM clause", text)

    select_list = text[select.end() : from_.start()].strip()
    if not select_list:
        raise SynthesisError("SELECT list is empty", text)

    where = _find_keyword(text, scan, "WHERE", from_.end())
    if where is None:
        source = text[from_.end() :].strip()
        predicate = None
    else:
        source = text[from_.end() : where.start()].strip()
        predicate = text[where.end() :].strip()
        if not predicate:
            raise SynthesisError("WHERE clause has no predicate", text)

    if not source:
        raise SynthesisError("FROM clause names no relation", text)

    items = tuple(parse_projection_item(part) for part in _split_top_level(select_list))
    return SelectQuery(text=text, projection=items, source=source, predicate=predicate)
