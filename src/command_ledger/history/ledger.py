"""HistoryLedger — bounded, linear undo/redo history."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

from ..commands.base import AsyncCommand, Command
from ..config import DEFAULT_MAX_DEPTH
from ..primitives.exceptions import (
    CommandError,
    IllegalStateError,
    IrrecoverableStateError,
    LedgerConfigurationError,
    LedgerCorruptedError,
)
from ..results import HistoryResult, HistoryStatus
from .buffer import HistoryBuffer

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..commands.base import BaseCommand
    from ..config import LedgerConfig
    from ..ports.audit import AuditOutcome, IAuditSink
    from .entry import HistoryEntry

logger = logging.getLogger("command_ledger.history")


class BaseLedger:
    """State, queries and bookkeeping shared by the sync and async ledgers."""

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        *,
        audit_sink: IAuditSink | None = None,
    ) -> None:
        if max_depth < 1:
            raise LedgerConfigurationError(
                f"max_depth must be at least 1, got {max_depth}"
            )
        self._buffer = HistoryBuffer(max_depth)
        self._audit = audit_sink
        self._corrupted = False

    @classmethod
    def from_config(
        cls, config: LedgerConfig, *, audit_sink: IAuditSink | None = None
    ) -> Self:
        return cls(config.max_depth, audit_sink=audit_sink)

    # ── Queries ──────────────────────────────────────────────────

    @property
    def max_depth(self) -> int:
        return self._buffer.max_depth

    @property
    def cursor(self) -> int:
        return self._buffer.cursor

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return self._buffer.entries

    @property
    def is_corrupted(self) -> bool:
        return self._corrupted

    def __len__(self) -> int:
        return len(self._buffer)

    def can_undo(self) -> bool:
        return not self._corrupted and self._buffer.can_undo()

    def can_redo(self) -> bool:
        return not self._corrupted and self._buffer.can_redo()

    def peek_undo(self) -> HistoryEntry | None:
        return self._buffer.undo_target()

    def peek_redo(self) -> HistoryEntry | None:
        return self._buffer.redo_target()

    def undo_labels(self) -> list[str]:
        return self._buffer.undo_labels()

    def redo_labels(self) -> list[str]:
        return self._buffer.redo_labels()

    # ── Bookkeeping ──────────────────────────────────────────────

    def _ensure_usable(self) -> None:
        if self._corrupted:
            raise LedgerCorruptedError()

    def _notify_before(self, operation: str, description: str) -> None:
        if self._audit is not None:
            self._audit.before(operation, description)

    def _notify_after(
        self, operation: str, description: str, outcome: AuditOutcome
    ) -> None:
        if self._audit is not None:
            self._audit.after(operation, description, outcome)

    def _append(self, command: BaseCommand, status: HistoryStatus) -> HistoryResult:
        entry = self._buffer.push(command)
        logger.info(
            "%s '%s' (seq=%d, cursor=%d/%d)",
            status.value.capitalize(),
            entry.describe(),
            entry.sequence,
            self.cursor,
            len(self),
        )
        return HistoryResult.done(status, entry)

    def _failed(
        self, operation: str, description: str, error: CommandError
    ) -> HistoryResult:
        logger.warning("%s of '%s' failed: %s", operation, description, error)
        self._notify_after(operation, description, "failure")
        return HistoryResult.failed(error)

    def _mark_corrupted(self, operation: str, description: str) -> None:
        self._corrupted = True
        logger.critical(
            "%s of '%s' left the receiver in an indeterminate state; "
            "ledger is now corrupted",
            operation,
            description,
        )
        self._notify_after(operation, description, "fatal")

    def _undo_failed(
        self, description: str, error: CommandError
    ) -> IrrecoverableStateError:
        self._mark_corrupted("undo", description)
        return IrrecoverableStateError(
            f"Undo of '{description}' failed; receiver state is indeterminate",
            cause=error,
        )

    def _reset(self) -> None:
        self._buffer.clear()
        if self._corrupted:
            logger.warning("Corrupted ledger reset by host")
        self._corrupted = False


def _reject_async(command: Command) -> None:
    if isinstance(command, AsyncCommand):
        raise TypeError("Async commands require an AsyncHistoryLedger")


class HistoryLedger(BaseLedger):
    """
    Synchronous undo/redo history over one receiver.

    Every operation runs to completion before returning. Clean failures
    and "nothing to do" come back as :class:`HistoryResult` values; a
    failed undo (or a failed rollback inside a composite) raises
    :class:`IrrecoverableStateError` and marks the ledger corrupted until
    :meth:`reset` is called.

    Usage::

        ledger = HistoryLedger(max_depth=50)
        ledger.execute(SetAttributeCommand(attribute="title", value="Draft"), doc)
        ledger.undo(doc)
        ledger.redo(doc)
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        *,
        audit_sink: IAuditSink | None = None,
    ) -> None:
        super().__init__(max_depth, audit_sink=audit_sink)
        self._busy = False

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self._busy:
            raise IllegalStateError(
                "HistoryLedger is already running an operation (re-entrant call)"
            )
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def execute(self, command: Command, context: Any) -> HistoryResult:
        """Apply *command* and, on success, make it the newest undoable entry."""
        _reject_async(command)
        with self._exclusive():
            self._ensure_usable()
            description = command.describe()
            self._notify_before("execute", description)
            try:
                command.apply(context)
            except CommandError as exc:
                return self._failed("execute", description, exc)
            except IrrecoverableStateError:
                self._mark_corrupted("execute", description)
                raise
            result = self._append(command, HistoryStatus.APPLIED)
            self._notify_after("execute", description, "success")
            return result

    def record(self, command: Command) -> HistoryResult:
        """Push an already-applied command (e.g. a committed transaction)."""
        _reject_async(command)
        with self._exclusive():
            self._ensure_usable()
            if not command.is_applied:
                raise IllegalStateError(
                    f"'{command.describe()}' must be applied before it is recorded"
                )
            description = command.describe()
            self._notify_before("record", description)
            result = self._append(command, HistoryStatus.RECORDED)
            self._notify_after("record", description, "success")
            return result

    def undo(self, context: Any) -> HistoryResult:
        """Revert the newest undoable entry."""
        with self._exclusive():
            self._ensure_usable()
            entry = self._buffer.undo_target()
            if entry is None:
                self._notify_after("undo", "nothing to undo", "noop")
                return HistoryResult.nothing_to_undo()
            description = entry.describe()
            self._notify_before("undo", description)
            try:
                entry.command.revert(context)
            except CommandError as exc:
                raise self._undo_failed(description, exc) from exc
            except IrrecoverableStateError:
                self._mark_corrupted("undo", description)
                raise
            self._buffer.step_back()
            logger.info(
                "Undone '%s' (cursor=%d/%d)", description, self.cursor, len(self)
            )
            self._notify_after("undo", description, "success")
            return HistoryResult.done(HistoryStatus.UNDONE, entry)

    def redo(self, context: Any) -> HistoryResult:
        """Re-apply the entry right after the cursor."""
        with self._exclusive():
            self._ensure_usable()
            entry = self._buffer.redo_target()
            if entry is None:
                self._notify_after("redo", "nothing to redo", "noop")
                return HistoryResult.nothing_to_redo()
            description = entry.describe()
            self._notify_before("redo", description)
            try:
                entry.command.apply(context)
            except CommandError as exc:
                return self._failed("redo", description, exc)
            except IrrecoverableStateError:
                self._mark_corrupted("redo", description)
                raise
            self._buffer.step_forward()
            logger.info(
                "Redone '%s' (cursor=%d/%d)", description, self.cursor, len(self)
            )
            self._notify_after("redo", description, "success")
            return HistoryResult.done(HistoryStatus.REDONE, entry)

    def reset(self) -> None:
        """Forget all history and clear the corrupted flag."""
        with self._exclusive():
            self._reset()
