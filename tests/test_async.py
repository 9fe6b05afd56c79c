"""Tests for the async commands, ledger and transaction runner."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from command_ledger.commands import (
    AsyncCommand,
    AsyncCompositeCommand,
    Command,
    CommandState,
)
from command_ledger.history import AsyncHistoryLedger
from command_ledger.primitives import (
    CommandError,
    IllegalStateError,
    IrrecoverableStateError,
    LedgerCorruptedError,
)
from command_ledger.results import HistoryStatus
from command_ledger.transactions import AsyncTransactionRunner

# ============================================================================
# Test Commands
# ============================================================================


class Store:
    """Receiver standing in for a remote key/value store."""

    def __init__(self) -> None:
        self.data: dict[str, int] = {}
        self.trace: list[str] = []


class RemotePut(AsyncCommand):
    key: str
    value: int
    delay: float = 0.0

    def describe(self) -> str:
        return f"Put {self.key}={self.value}"

    async def _apply(self, context: Store) -> None:
        context.trace.append(f"start:{self.key}")
        await asyncio.sleep(self.delay)
        context.data[self.key] = self.value
        context.trace.append(f"end:{self.key}")

    async def _revert(self, context: Store) -> None:
        await asyncio.sleep(self.delay)
        del context.data[self.key]


class RemoteFail(AsyncCommand):
    async def _apply(self, context: Any) -> None:
        raise TimeoutError("store unreachable")

    async def _revert(self, context: Any) -> None:  # pragma: no cover
        pass


class LocalIncrement(Command):
    """Plain sync command mixed into async batches."""

    def _apply(self, context: Store) -> None:
        context.data["hits"] = context.data.get("hits", 0) + 1

    def _revert(self, context: Store) -> None:
        context.data["hits"] -= 1


class StuckPut(RemotePut):
    async def _revert(self, context: Store) -> None:
        raise OSError("store went read-only")


class SlowRevertPut(RemotePut):
    async def _revert(self, context: Store) -> None:
        await asyncio.sleep(5)
        del context.data[self.key]  # pragma: no cover


class Reentrant(AsyncCommand):
    """Awaits the ledger that is executing it."""

    ledger: Any

    async def _apply(self, context: Store) -> None:
        await self.ledger.execute(RemotePut(key="x", value=0), context)

    async def _revert(self, context: Store) -> None:  # pragma: no cover
        pass


# ============================================================================
# Tests: AsyncCommand
# ============================================================================


class TestAsyncCommand:
    @pytest.mark.asyncio()
    async def test_round_trip(self) -> None:
        store = Store()
        command = RemotePut(key="a", value=1)

        await command.apply(store)
        assert store.data == {"a": 1}

        await command.revert(store)
        assert store.data == {}
        assert command.state is CommandState.REVERTED

    @pytest.mark.asyncio()
    async def test_failure_is_wrapped(self) -> None:
        with pytest.raises(CommandError) as exc_info:
            await RemoteFail().apply(Store())

        assert isinstance(exc_info.value.cause, TimeoutError)


class TestAsyncCompositeCommand:
    @pytest.mark.asyncio()
    async def test_mixed_children_roll_back(self) -> None:
        store = Store()
        composite = AsyncCompositeCommand(
            commands=[RemotePut(key="a", value=1), LocalIncrement(), RemoteFail()]
        )

        with pytest.raises(CommandError):
            await composite.apply(store)

        assert store.data == {"hits": 0}
        assert composite.failed_index == 2

    @pytest.mark.asyncio()
    async def test_revert_in_reverse_order(self) -> None:
        store = Store()
        composite = AsyncCompositeCommand(
            commands=[RemotePut(key="a", value=1), RemotePut(key="b", value=2)]
        )

        await composite.apply(store)
        await composite.revert(store)

        assert store.data == {}

    @pytest.mark.asyncio()
    async def test_failed_rollback_is_irrecoverable(self) -> None:
        composite = AsyncCompositeCommand(
            commands=[StuckPut(key="a", value=1), RemoteFail()]
        )

        with pytest.raises(IrrecoverableStateError):
            await composite.apply(Store())

    @pytest.mark.asyncio()
    async def test_cancellation_rolls_back_applied_children(self) -> None:
        store = Store()
        first = RemotePut(key="a", value=1)
        composite = AsyncCompositeCommand(
            commands=[first, RemotePut(key="b", value=2, delay=5)]
        )

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(composite.apply(store), 0.05)

        assert store.data == {}
        assert store.trace == ["start:a", "end:a", "start:b"]
        assert composite.failed_index == 1
        assert composite.state is CommandState.PENDING
        assert first.state is CommandState.REVERTED


# ============================================================================
# Tests: AsyncHistoryLedger
# ============================================================================


class TestAsyncHistoryLedger:
    @pytest.mark.asyncio()
    async def test_execute_undo_redo(self) -> None:
        ledger = AsyncHistoryLedger(max_depth=5)
        store = Store()

        assert await ledger.execute(RemotePut(key="a", value=1), store)
        assert await ledger.execute(LocalIncrement(), store)
        assert store.data == {"a": 1, "hits": 1}

        assert await ledger.undo(store)
        assert await ledger.undo(store)
        assert store.data == {"hits": 0}
        assert (await ledger.undo(store)).status is HistoryStatus.NOTHING_TO_UNDO

        assert await ledger.redo(store)
        assert store.data == {"a": 1, "hits": 0}

    @pytest.mark.asyncio()
    async def test_operations_never_interleave(self) -> None:
        """Concurrent executes against one receiver run one after another."""
        ledger = AsyncHistoryLedger()
        store = Store()

        await asyncio.gather(
            ledger.execute(RemotePut(key="a", value=1, delay=0.02), store),
            ledger.execute(RemotePut(key="b", value=2, delay=0.0), store),
        )

        assert store.trace == ["start:a", "end:a", "start:b", "end:b"]
        assert ledger.undo_labels() == ["Put b=2", "Put a=1"]
        assert not ledger.is_busy

    @pytest.mark.asyncio()
    async def test_clean_failure_returns_result(self) -> None:
        ledger = AsyncHistoryLedger()

        result = await ledger.execute(RemoteFail(), Store())

        assert result.status is HistoryStatus.FAILED
        assert len(ledger) == 0

    @pytest.mark.asyncio()
    async def test_failed_undo_corrupts_until_reset(self) -> None:
        ledger = AsyncHistoryLedger()
        store = Store()
        await ledger.execute(StuckPut(key="a", value=1), store)

        with pytest.raises(IrrecoverableStateError):
            await ledger.undo(store)
        with pytest.raises(LedgerCorruptedError):
            await ledger.redo(store)

        await ledger.reset()
        assert not ledger.is_corrupted
        assert len(ledger) == 0

    @pytest.mark.asyncio()
    async def test_cancelled_execute_leaves_ledger_unchanged(self) -> None:
        ledger = AsyncHistoryLedger()
        store = Store()
        composite = AsyncCompositeCommand(
            commands=[
                RemotePut(key="a", value=1),
                RemotePut(key="b", value=2, delay=5),
            ]
        )

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(ledger.execute(composite, store), 0.05)

        assert store.data == {}
        assert len(ledger) == 0
        assert not ledger.is_corrupted
        assert not ledger.is_busy
        assert await ledger.execute(RemotePut(key="c", value=3), store)

    @pytest.mark.asyncio()
    async def test_cancelled_undo_corrupts_ledger(self) -> None:
        ledger = AsyncHistoryLedger()
        store = Store()
        await ledger.execute(SlowRevertPut(key="a", value=1), store)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(ledger.undo(store), 0.05)

        assert ledger.is_corrupted
        assert ledger.cursor == 1
        assert not ledger.is_busy
        with pytest.raises(LedgerCorruptedError):
            await ledger.undo(store)

    @pytest.mark.asyncio()
    async def test_reentrant_call_is_rejected(self) -> None:
        ledger = AsyncHistoryLedger()
        store = Store()

        with pytest.raises(IllegalStateError):
            await asyncio.wait_for(ledger.execute(Reentrant(ledger=ledger), store), 1)

        assert len(ledger) == 0
        assert store.data == {}
        assert not ledger.is_busy
        assert await ledger.execute(RemotePut(key="a", value=1), store)


# ============================================================================
# Tests: AsyncTransactionRunner
# ============================================================================


class TestAsyncTransactionRunner:
    @pytest.mark.asyncio()
    async def test_rollback(self) -> None:
        store = Store()

        result = await AsyncTransactionRunner().run(
            [RemotePut(key="a", value=1), RemoteFail()], store
        )

        assert not result
        assert result.error is not None
        assert result.error.description == "RemoteFail"
        assert result.error.failed_index == 1
        assert store.data == {}

    @pytest.mark.asyncio()
    async def test_commit_and_record(self) -> None:
        store = Store()
        ledger = AsyncHistoryLedger()

        result = await AsyncTransactionRunner().run(
            [RemotePut(key="a", value=1), LocalIncrement()],
            store,
            label="Import",
            ledger=ledger,
        )

        assert result
        assert ledger.undo_labels() == ["Import"]
        await ledger.undo(store)
        assert store.data == {"hits": 0}
