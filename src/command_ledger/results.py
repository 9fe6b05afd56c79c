"""Result wrappers returned by ledgers and transaction runners.

Expected outcomes (nothing to undo, a command that failed cleanly) come
back as values; only fatal conditions are raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from .history.entry import HistoryEntry
    from .primitives.exceptions import CommandError, TransactionError

C = TypeVar("C")


class HistoryStatus(str, Enum):
    """Outcome of a single ledger operation."""

    APPLIED = "APPLIED"
    RECORDED = "RECORDED"
    UNDONE = "UNDONE"
    REDONE = "REDONE"
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"
    NOTHING_TO_REDO = "NOTHING_TO_REDO"
    FAILED = "FAILED"


_SUCCESSFUL = frozenset(
    {
        HistoryStatus.APPLIED,
        HistoryStatus.RECORDED,
        HistoryStatus.UNDONE,
        HistoryStatus.REDONE,
    }
)


@dataclass(frozen=True)
class HistoryResult:
    """Returned by ``execute`` / ``record`` / ``undo`` / ``redo``.

    Usage::

        result = ledger.undo(doc)
        if result.status is HistoryStatus.NOTHING_TO_UNDO:
            ...
        elif not result:
            show_error(result.error)
    """

    status: HistoryStatus
    entry: HistoryEntry | None = None
    error: CommandError | None = None

    @property
    def success(self) -> bool:
        return self.status in _SUCCESSFUL

    def __bool__(self) -> bool:
        return self.success

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def done(cls, status: HistoryStatus, entry: HistoryEntry) -> HistoryResult:
        return cls(status=status, entry=entry)

    @classmethod
    def nothing_to_undo(cls) -> HistoryResult:
        return cls(status=HistoryStatus.NOTHING_TO_UNDO)

    @classmethod
    def nothing_to_redo(cls) -> HistoryResult:
        return cls(status=HistoryStatus.NOTHING_TO_REDO)

    @classmethod
    def failed(cls, error: CommandError) -> HistoryResult:
        return cls(status=HistoryStatus.FAILED, error=error)


@dataclass(frozen=True)
class TransactionResult(Generic[C]):
    """Returned by transaction runners.

    On success ``command`` holds the applied composite, ready to be pushed
    onto a ledger with ``record()``. On failure ``error`` explains which
    command failed; the rollback has already completed.
    """

    command: C | None = None
    error: TransactionError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def committed(cls, command: C) -> TransactionResult[C]:
        return cls(command=command)

    @classmethod
    def rolled_back(cls, error: TransactionError) -> TransactionResult[C]:
        return cls(error=error)
