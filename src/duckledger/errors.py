"""🚨 Errors raised while translating and executing lake mutations."""

from __future__ import annotations


class DuckLedgerError(Exception):
    """Base exception for duckledger errors."""


class LakeWarning(UserWarning):
    """Non-fatal problems (missing metadata, ambiguous classification...)."""


class ExtractionError(DuckLedgerError):
    """The pipeline rendered no SQL text."""


class SynthesisError(DuckLedgerError):
    """Rendered SQL could not be interpreted or turned into a statement."""

    def __init__(self, message: str, fragment: str | None = None):
        if fragment is not None:
            message = f"{message}: {fragment!r}"
        super().__init__(message)
        self.fragment = fragment


class ClassificationAmbiguity(SynthesisError):
    """A filtered pipeline also rewrites columns without CASE WHEN."""


class NoAssignmentsError(SynthesisError):
    """An UPDATE was requested but the projection carries no assignments."""


class NoUpdateColumnsError(SynthesisError):
    """Every projected column of an upsert is a key column."""


class ExecutionError(DuckLedgerError):
    """The engine rejected a synthesized statement."""

    def __init__(self, message: str, sql: str):
        super().__init__(f"{message}\n  statement: {sql}")
        self.sql = sql


class MetadataUpdateError(DuckLedgerError):
    """No snapshot could be annotated."""


class TransactionStateError(DuckLedgerError):
    """begin/commit/rollback called in the wrong state."""


class TransactionRolledBack(DuckLedgerError):
    """A unit of work failed and its transaction was rolled back."""

    def __init__(self, original: BaseException):
        super().__init__(f"transaction rolled back due to: {original}")
        self.original = original


class RowMatchError(DuckLedgerError):
    """Keyed row operation found conflicting or unmatched rows."""
