"""Tests for TransactionRunner — all-or-nothing batches."""

from __future__ import annotations

import pytest

from command_ledger.commands import Command, CompositeCommand
from command_ledger.history import HistoryLedger
from command_ledger.primitives import IrrecoverableStateError, TransactionError
from command_ledger.transactions import TransactionRunner

# ============================================================================
# Test Domain
# ============================================================================


class InsufficientFundsError(Exception):
    pass


class Account:
    def __init__(self, balance: int) -> None:
        self.balance = balance


class Deposit(Command):
    amount: int

    def describe(self) -> str:
        return f"Deposit({self.amount})"

    def _apply(self, context: Account) -> None:
        context.balance += self.amount

    def _revert(self, context: Account) -> None:
        context.balance -= self.amount


class Withdraw(Command):
    amount: int

    def describe(self) -> str:
        return f"Withdraw({self.amount})"

    def _apply(self, context: Account) -> None:
        if context.balance < self.amount:
            raise InsufficientFundsError(
                f"balance {context.balance} < {self.amount}"
            )
        context.balance -= self.amount

    def _revert(self, context: Account) -> None:
        context.balance += self.amount


class StuckDeposit(Deposit):
    def _revert(self, context: Account) -> None:
        raise RuntimeError("ledger offline")


# ============================================================================
# Tests
# ============================================================================


class TestTransactionRunner:
    """Batches commit as a whole or not at all."""

    def test_insufficient_funds_rolls_back(self) -> None:
        """[Deposit(100), Withdraw(500)] on 200 fails and leaves 200."""
        account = Account(200)

        result = TransactionRunner().run(
            [Deposit(amount=100), Withdraw(amount=500)], account
        )

        assert not result
        assert result.command is None
        assert isinstance(result.error, TransactionError)
        assert result.error.description == "Withdraw(500)"
        assert result.error.failed_index == 1
        assert result.error.rolled_back is True
        assert isinstance(result.error.cause.cause, InsufficientFundsError)
        assert account.balance == 200

    def test_commit_returns_applied_composite(self) -> None:
        account = Account(200)

        result = TransactionRunner().run(
            [Deposit(amount=100), Withdraw(amount=250)], account, label="Transfer"
        )

        assert result
        assert isinstance(result.command, CompositeCommand)
        assert result.command.is_applied
        assert result.command.describe() == "Transfer"
        assert account.balance == 50

    def test_committed_transaction_is_one_undo_step(self) -> None:
        account = Account(0)
        ledger = HistoryLedger()
        result = TransactionRunner().run(
            [Deposit(amount=10), Deposit(amount=20)], account
        )
        assert result.command is not None

        ledger.record(result.command)
        ledger.undo(account)

        assert account.balance == 0
        assert ledger.can_undo() is False
        assert ledger.redo(account)
        assert account.balance == 30

    def test_ledger_keyword_records_on_commit(self) -> None:
        account = Account(0)
        ledger = HistoryLedger()

        TransactionRunner().run([Deposit(amount=5)], account, ledger=ledger)

        assert ledger.undo_labels() == ["Composite[Deposit(5)]"]

    def test_ledger_keyword_ignored_on_rollback(self) -> None:
        account = Account(0)
        ledger = HistoryLedger()

        result = TransactionRunner().run(
            [Deposit(amount=5), Withdraw(amount=50)], account, ledger=ledger
        )

        assert not result
        assert len(ledger) == 0

    def test_empty_batch_commits(self) -> None:
        result = TransactionRunner().run([], Account(1))
        assert result
        assert result.command is not None
        assert result.command.commands == ()

    def test_failed_rollback_is_fatal(self) -> None:
        account = Account(0)

        with pytest.raises(IrrecoverableStateError):
            TransactionRunner().run(
                [StuckDeposit(amount=10), Withdraw(amount=100)], account
            )

        assert account.balance == 10

    def test_runner_is_reusable(self) -> None:
        runner = TransactionRunner()
        first, second = Account(0), Account(100)

        ok = runner.run([Deposit(amount=1)], first)
        failed = runner.run([Withdraw(amount=500)], second)

        assert ok
        assert not failed
        assert (first.balance, second.balance) == (1, 100)
        assert failed.error is not None
        assert failed.error.failed_index == 0
