"""🔒 Transactions - begin / commit / rollback with snapshot annotations.

State machine per engine::

    IDLE --begin--> ACTIVE --commit--> COMMITTED
                           --rollback-> ROLLED_BACK

Nested transactions are not supported: ``begin()`` while ACTIVE raises
``TransactionStateError``. One engine (one connection) drives one unit of
work at a time.

Three ways to use it:

    # manual
    engine.begin()
    lake_exec(engine.table("t").filter("id != 2"))
    engine.commit(author="ana", commit_message="drop row 2")

    # scoped
    with engine.transaction(author="ana", commit_message="drop row 2"):
        lake_exec(engine.table("t").filter("id != 2"))

    # closure
    with_transaction(engine, lake_exec, engine.table("t").filter("id != 2"), author="ana")

Whether a commit produces a new snapshot is up to the storage engine; the
metadata lands on whatever snapshot is the latest after COMMIT.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

import duckdb

from duckledger.errors import (
    ExecutionError,
    LakeWarning,
    MetadataUpdateError,
    TransactionRolledBack,
    TransactionStateError,
)

from .metadata import SnapshotMetadataRecorder

if TYPE_CHECKING:
    from duckledger.engine.duckdb import LakeEngine

T = TypeVar("T")


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class TransactionOutcome:
    """Result of a unit of work: either a value or the exception it raised."""

    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def capture(cls, work: Callable[..., Any], *args: Any, **kwargs: Any) -> "TransactionOutcome":
        try:
            return cls(value=work(*args, **kwargs))
        except Exception as e:
            return cls(error=e)


class TransactionManager:
    """Transaction state machine bound to one engine."""

    def __init__(self, engine: "LakeEngine"):
        self.engine = engine
        self.state = TransactionState.IDLE
        self.recorder = SnapshotMetadataRecorder(engine)

    @property
    def active(self) -> bool:
        return self.state is TransactionState.ACTIVE

    def _require_active(self, action: str) -> None:
        if not self.active:
            raise TransactionStateError(
                f"Cannot {action}: no active transaction (state: {self.state.value})"
            )

    def begin(self) -> None:
        """Start a transaction."""
        if self.active:
            raise TransactionStateError(
                "A transaction is already active; nested transactions are not supported"
            )
        try:
            self.engine.execute("BEGIN TRANSACTION")
        except duckdb.Error as e:
            raise ExecutionError(f"Could not begin transaction: {e}", "BEGIN TRANSACTION") from e
        self.state = TransactionState.ACTIVE
        self.engine.say("🔓 Transaction started")

    def commit(
        self,
        author: str | None = None,
        commit_message: str | None = None,
        commit_extra_info: str | None = None,
    ) -> None:
        """Commit, then annotate the latest snapshot if any metadata is given.

        Metadata failures are reported as ``LakeWarning``; the commit stands.
        """
        self._require_active("commit")
        try:
            self.engine.execute("COMMIT")
        except duckdb.Error as e:
            self.state = TransactionState.ROLLED_BACK
            raise ExecutionError(f"Commit failed: {e}", "COMMIT") from e
        self.state = TransactionState.COMMITTED
        self.engine.say("✅ Transaction committed")

        self._annotate(author, commit_message, commit_extra_info)

    def rollback(self) -> None:
        """Discard everything since ``begin()``."""
        self._require_active("rollback")
        try:
            self.engine.execute("ROLLBACK")
        except duckdb.Error as e:
            raise ExecutionError(f"Rollback failed: {e}", "ROLLBACK") from e
        finally:
            self.state = TransactionState.ROLLED_BACK
        self.engine.say("↩️ Transaction rolled back")

    def _annotate(
        self,
        author: str | None,
        commit_message: str | None,
        commit_extra_info: str | None,
    ) -> int | None:
        author = author or self.engine.author
        if author is None and commit_message is None and commit_extra_info is None:
            return None
        try:
            return self.recorder.record(
                author=author,
                commit_message=commit_message,
                commit_extra_info=commit_extra_info,
            )
        except MetadataUpdateError as e:
            warnings.warn(f"Could not update snapshot metadata: {e}", LakeWarning, stacklevel=3)
            return None

    def _rollback_after_failure(self, error: BaseException) -> None:
        # the unit of work may have committed or rolled back itself
        if not self.active:
            return
        try:
            self.rollback()
        except ExecutionError as e:
            warnings.warn(
                f"Rollback after {type(error).__name__} also failed: {e}",
                LakeWarning,
                stacklevel=3,
            )

    @contextmanager
    def scope(
        self,
        author: str | None = None,
        commit_message: str | None = None,
        commit_extra_info: str | None = None,
    ) -> Iterator["LakeEngine"]:
        """Commit when the block finishes, roll back if it raises.

        Raises:
            TransactionRolledBack: wrapping the block's exception
        """
        self.begin()
        try:
            yield self.engine
        except Exception as e:
            self._rollback_after_failure(e)
            raise TransactionRolledBack(e) from e
        except BaseException as e:
            self._rollback_after_failure(e)
            raise
        self.commit(
            author=author,
            commit_message=commit_message,
            commit_extra_info=commit_extra_info,
        )

    def run(
        self,
        work: Callable[..., T],
        *args: Any,
        author: str | None = None,
        commit_message: str | None = None,
        commit_extra_info: str | None = None,
        **kwargs: Any,
    ) -> T:
        """Run ``work(*args, **kwargs)`` as one unit and return its value."""
        self.begin()
        try:
            outcome = TransactionOutcome.capture(work, *args, **kwargs)
        except BaseException as e:
            # interrupts are not captured; roll back and let them through
            self._rollback_after_failure(e)
            raise
        if not outcome.ok:
            self._rollback_after_failure(outcome.error)
            raise TransactionRolledBack(outcome.error) from outcome.error

        self.commit(
            author=author,
            commit_message=commit_message,
            commit_extra_info=commit_extra_info,
        )
        return outcome.value


def begin_transaction(engine: "LakeEngine") -> None:
    engine.transactions.begin()


def commit_transaction(
    engine: "LakeEngine",
    author: str | None = None,
    commit_message: str | None = None,
    commit_extra_info: str | None = None,
) -> None:
    engine.transactions.commit(
        author=author,
        commit_message=commit_message,
        commit_extra_info=commit_extra_info,
    )


def rollback_transaction(engine: "LakeEngine") -> None:
    engine.transactions.rollback()


def with_transaction(
    engine: "LakeEngine",
    work: Callable[..., T],
    *args: Any,
    author: str | None = None,
    commit_message: str | None = None,
    commit_extra_info: str | None = None,
    **kwargs: Any,
) -> T:
    """Run ``work`` inside a transaction; commit on success, roll back on error.

    Example:
        with_transaction(
            engine,
            create_table, engine, df, "cars",
            author="Data Engineer",
            commit_message="Initial car data load",
        )
    """
    return engine.transactions.run(
        work,
        *args,
        author=author,
        commit_message=commit_message,
        commit_extra_info=commit_extra_info,
        **kwargs,
    )
