"""Primitives: exceptions."""

from __future__ import annotations

from .exceptions import (
    CommandError,
    CommandLedgerError,
    IllegalStateError,
    IrrecoverableStateError,
    LedgerConfigurationError,
    LedgerCorruptedError,
    TransactionError,
)

__all__ = [
    "CommandError",
    "CommandLedgerError",
    "IllegalStateError",
    "IrrecoverableStateError",
    "LedgerConfigurationError",
    "LedgerCorruptedError",
    "TransactionError",
]
