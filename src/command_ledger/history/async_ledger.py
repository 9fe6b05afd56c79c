"""AsyncHistoryLedger — undo/redo history for commands that await I/O."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from inspect import isawaitable
from typing import TYPE_CHECKING, Any

from ..config import DEFAULT_MAX_DEPTH
from ..primitives.exceptions import (
    CommandError,
    IllegalStateError,
    IrrecoverableStateError,
)
from ..results import HistoryResult, HistoryStatus
from .ledger import BaseLedger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..commands.base import BaseCommand
    from ..ports.audit import IAuditSink

logger = logging.getLogger("command_ledger.history")


async def _invoke(command: BaseCommand, operation: str, context: Any) -> None:
    result = getattr(command, operation)(context)
    if isawaitable(result):
        await result


class AsyncHistoryLedger(BaseLedger):
    """
    Async counterpart of :class:`HistoryLedger`.

    Accepts both :class:`~command_ledger.commands.Command` and
    :class:`~command_ledger.commands.AsyncCommand`. All mutating operations
    go through a single ``asyncio.Lock``: a second ``execute``/``undo``/
    ``redo`` waits until the one in flight has resolved, so partial
    mutations against the receiver never interleave.

    A command calling back into its own ledger from ``apply`` or ``revert``
    gets :class:`IllegalStateError` instead of waiting on the lock forever.
    Cancelling an ``undo`` while the revert is in flight marks the ledger
    corrupted.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        *,
        audit_sink: IAuditSink | None = None,
    ) -> None:
        super().__init__(max_depth, audit_sink=audit_sink)
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        task = asyncio.current_task()
        if task is not None and task is self._owner:
            raise IllegalStateError(
                "AsyncHistoryLedger is already running an operation (re-entrant call)"
            )
        async with self._lock:
            self._owner = task
            try:
                yield
            finally:
                self._owner = None

    async def execute(self, command: BaseCommand, context: Any) -> HistoryResult:
        """Apply *command* and, on success, make it the newest undoable entry."""
        async with self._exclusive():
            self._ensure_usable()
            description = command.describe()
            self._notify_before("execute", description)
            try:
                await _invoke(command, "apply", context)
            except CommandError as exc:
                return self._failed("execute", description, exc)
            except IrrecoverableStateError:
                self._mark_corrupted("execute", description)
                raise
            result = self._append(command, HistoryStatus.APPLIED)
            self._notify_after("execute", description, "success")
            return result

    async def record(self, command: BaseCommand) -> HistoryResult:
        """Push an already-applied command (e.g. a committed transaction)."""
        async with self._exclusive():
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

    async def undo(self, context: Any) -> HistoryResult:
        """Revert the newest undoable entry."""
        async with self._exclusive():
            self._ensure_usable()
            entry = self._buffer.undo_target()
            if entry is None:
                self._notify_after("undo", "nothing to undo", "noop")
                return HistoryResult.nothing_to_undo()
            description = entry.describe()
            self._notify_before("undo", description)
            try:
                await _invoke(entry.command, "revert", context)
            except CommandError as exc:
                raise self._undo_failed(description, exc) from exc
            except (IrrecoverableStateError, asyncio.CancelledError):
                self._mark_corrupted("undo", description)
                raise
            self._buffer.step_back()
            logger.info(
                "Undone '%s' (cursor=%d/%d)", description, self.cursor, len(self)
            )
            self._notify_after("undo", description, "success")
            return HistoryResult.done(HistoryStatus.UNDONE, entry)

    async def redo(self, context: Any) -> HistoryResult:
        """Re-apply the entry right after the cursor."""
        async with self._exclusive():
            self._ensure_usable()
            entry = self._buffer.redo_target()
            if entry is None:
                self._notify_after("redo", "nothing to redo", "noop")
                return HistoryResult.nothing_to_redo()
            description = entry.describe()
            self._notify_before("redo", description)
            try:
                await _invoke(entry.command, "apply", context)
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

    async def reset(self) -> None:
        """Forget all history and clear the corrupted flag."""
        async with self._exclusive():
            self._reset()
