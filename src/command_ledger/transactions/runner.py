"""TransactionRunner — all-or-nothing execution of a batch of commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..commands.composite import AsyncCompositeCommand, CompositeCommand
from ..primitives.exceptions import (
    CommandError,
    IrrecoverableStateError,
    TransactionError,
)
from ..results import TransactionResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..commands.base import BaseCommand, Command
    from ..history import AsyncHistoryLedger, HistoryLedger
    from ..ports.audit import AuditOutcome, IAuditSink

logger = logging.getLogger("command_ledger.transactions")


class _RunnerBase:
    def __init__(self, *, audit_sink: IAuditSink | None = None) -> None:
        self._audit = audit_sink

    def _notify_before(self, description: str) -> None:
        if self._audit is not None:
            self._audit.before("transaction", description)

    def _notify_after(self, description: str, outcome: AuditOutcome) -> None:
        if self._audit is not None:
            self._audit.after("transaction", description, outcome)

    def _rolled_back(
        self, description: str, exc: CommandError, failed_index: int | None
    ) -> TransactionError:
        error = TransactionError(exc, failed_index=failed_index)
        logger.warning("Transaction '%s' rolled back: %s", description, error)
        self._notify_after(description, "failure")
        return error

    def _committed(self, description: str, size: int) -> None:
        logger.info("Transaction '%s' committed (%d commands)", description, size)
        self._notify_after(description, "success")


class TransactionRunner(_RunnerBase):
    """
    Runs commands as one unit against a context.

    Holds no per-call state, so one runner can serve many callers working
    on distinct receivers.

    Usage::

        runner = TransactionRunner()
        result = runner.run([Deposit(amount=100), Withdraw(amount=500)], account)
        if result:
            ledger.record(result.command)  # undoable as a single step
        else:
            print(result.error.description, result.error.failed_index)

    Pass ``ledger=`` to record the committed composite in one go.
    """

    def run(
        self,
        commands: Iterable[Command],
        context: Any,
        *,
        label: str | None = None,
        ledger: HistoryLedger | None = None,
    ) -> TransactionResult[CompositeCommand]:
        composite = CompositeCommand(commands=tuple(commands), label=label)
        description = composite.describe()
        self._notify_before(description)
        try:
            composite.apply(context)
        except CommandError as exc:
            error = self._rolled_back(description, exc, composite.failed_index)
            return TransactionResult.rolled_back(error)
        except IrrecoverableStateError:
            self._notify_after(description, "fatal")
            raise
        self._committed(description, len(composite.commands))
        if ledger is not None:
            ledger.record(composite)
        return TransactionResult.committed(composite)


class AsyncTransactionRunner(_RunnerBase):
    """Async counterpart of :class:`TransactionRunner`.

    Accepts a mix of sync and async commands.
    """

    async def run(
        self,
        commands: Iterable[BaseCommand],
        context: Any,
        *,
        label: str | None = None,
        ledger: AsyncHistoryLedger | None = None,
    ) -> TransactionResult[AsyncCompositeCommand]:
        composite = AsyncCompositeCommand(commands=tuple(commands), label=label)
        description = composite.describe()
        self._notify_before(description)
        try:
            await composite.apply(context)
        except CommandError as exc:
            error = self._rolled_back(description, exc, composite.failed_index)
            return TransactionResult.rolled_back(error)
        except IrrecoverableStateError:
            self._notify_after(description, "fatal")
            raise
        self._committed(description, len(composite.commands))
        if ledger is not None:
            await ledger.record(composite)
        return TransactionResult.committed(composite)
