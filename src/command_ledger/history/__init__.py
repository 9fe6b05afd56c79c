"""History — linear undo/redo ledgers."""

from .async_ledger import AsyncHistoryLedger
from .buffer import HistoryBuffer
from .entry import HistoryEntry
from .ledger import BaseLedger, HistoryLedger

__all__ = [
    "AsyncHistoryLedger",
    "BaseLedger",
    "HistoryBuffer",
    "HistoryEntry",
    "HistoryLedger",
]
