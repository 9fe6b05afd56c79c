"""Transactions — all-or-nothing batches with automatic rollback."""

from .runner import AsyncTransactionRunner, TransactionRunner

__all__ = [
    "AsyncTransactionRunner",
    "TransactionRunner",
]
