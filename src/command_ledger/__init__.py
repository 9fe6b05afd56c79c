"""command-ledger — reversible commands, undo/redo history and transactions.

Zero infrastructure dependencies. pydantic for frozen command models and
configuration.
"""

from __future__ import annotations

# ── Adapters ────────────────────────────────────────────────────
from .adapters import LoggingAuditSink

# ── Commands ────────────────────────────────────────────────────
from .commands import (
    AsyncCommand,
    AsyncCompositeCommand,
    BaseCommand,
    Command,
    CommandState,
    CompositeCommand,
    FunctionCommand,
    SetAttributeCommand,
    SetItemCommand,
)
from .config import DEFAULT_MAX_DEPTH, LedgerConfig

# ── History ─────────────────────────────────────────────────────
from .history import AsyncHistoryLedger, HistoryEntry, HistoryLedger

# ── Ports ───────────────────────────────────────────────────────
from .ports import AuditOutcome, IAuditSink

# ── Primitives ──────────────────────────────────────────────────
from .primitives import (
    CommandError,
    CommandLedgerError,
    IllegalStateError,
    IrrecoverableStateError,
    LedgerConfigurationError,
    LedgerCorruptedError,
    TransactionError,
)
from .results import HistoryResult, HistoryStatus, TransactionResult

# ── Transactions ────────────────────────────────────────────────
from .transactions import AsyncTransactionRunner, TransactionRunner

__all__: list[str] = [
    # Commands
    "AsyncCommand",
    "AsyncCompositeCommand",
    "BaseCommand",
    "Command",
    "CommandState",
    "CompositeCommand",
    "FunctionCommand",
    "SetAttributeCommand",
    "SetItemCommand",
    # History
    "AsyncHistoryLedger",
    "HistoryEntry",
    "HistoryLedger",
    "HistoryResult",
    "HistoryStatus",
    # Transactions
    "AsyncTransactionRunner",
    "TransactionResult",
    "TransactionRunner",
    # Configuration
    "DEFAULT_MAX_DEPTH",
    "LedgerConfig",
    # Ports & adapters
    "AuditOutcome",
    "IAuditSink",
    "LoggingAuditSink",
    # Primitives
    "CommandError",
    "CommandLedgerError",
    "IllegalStateError",
    "IrrecoverableStateError",
    "LedgerConfigurationError",
    "LedgerCorruptedError",
    "TransactionError",
]
