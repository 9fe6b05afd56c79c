"""Exception hierarchy for command-ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..commands.base import BaseCommand


class CommandLedgerError(Exception):
    """Root exception for the entire command-ledger package."""


class CommandError(CommandLedgerError):
    """Raised when a command's apply or revert fails.

    Carries the failing command, its ``describe()`` label and the
    underlying cause (also chained as ``__cause__``).
    """

    def __init__(
        self,
        command: BaseCommand,
        cause: BaseException | None = None,
        *,
        phase: str = "apply",
    ) -> None:
        self.command = command
        self.description = command.describe()
        self.cause = cause
        self.phase = phase
        msg = f"{phase} of '{self.description}' failed"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class IllegalStateError(CommandLedgerError):
    """Raised on lifecycle misuse.

    E.g. revert without a prior apply, apply twice in a row, or a
    re-entrant call into a ledger that is already running an operation.
    """


class TransactionError(CommandLedgerError):
    """Returned by the transaction runner when a batch fails cleanly.

    ``rolled_back`` confirms the already-applied siblings were reverted.
    """

    def __init__(
        self,
        cause: CommandError,
        *,
        failed_index: int | None = None,
        rolled_back: bool = True,
    ) -> None:
        self.cause = cause
        self.description = cause.description
        self.failed_index = failed_index
        self.rolled_back = rolled_back
        position = f" at index {failed_index}" if failed_index is not None else ""
        state = "rolled back" if rolled_back else "NOT rolled back"
        super().__init__(
            f"Transaction failed{position} on '{self.description}' ({state}): "
            f"{cause.cause or cause}"
        )


class IrrecoverableStateError(CommandLedgerError):
    """Fatal: a revert failed while undoing or rolling back.

    The receiver's true state is no longer trustworthy. The host must
    restore it from a known-good snapshot and reset the ledger.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class LedgerCorruptedError(IrrecoverableStateError):
    """Raised for every mutating call on a ledger marked corrupted."""

    def __init__(self) -> None:
        super().__init__(
            "History ledger is corrupted; call reset() after restoring the receiver."
        )


class LedgerConfigurationError(CommandLedgerError):
    """Raised when a ledger is built with invalid settings."""
