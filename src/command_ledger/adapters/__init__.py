"""Adapters — default implementations of the ports."""

from __future__ import annotations

from .logging_audit import LoggingAuditSink

__all__ = ["LoggingAuditSink"]
