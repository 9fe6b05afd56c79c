"""IAuditSink — optional observer of ledger and transaction operations."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

AuditOutcome = Literal["success", "failure", "fatal", "noop"]


@runtime_checkable
class IAuditSink(Protocol):
    """Port notified around every ledger / transaction operation.

    Only the ``describe()`` label of the command is passed; the format of
    whatever the sink writes is up to the sink.
    """

    def before(self, operation: str, description: str) -> None:
        """Called before *operation* (``execute``, ``undo``, ...) starts."""
        ...

    def after(self, operation: str, description: str, outcome: AuditOutcome) -> None:
        """Called once *operation* resolved to *outcome*."""
        ...
