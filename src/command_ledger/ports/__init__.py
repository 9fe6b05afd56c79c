"""Ports — protocols the host application may implement."""

from __future__ import annotations

from .audit import AuditOutcome, IAuditSink

__all__ = [
    "AuditOutcome",
    "IAuditSink",
]
