"""LoggingAuditSink — writes the audit trail to a standard logger."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..ports.audit import IAuditSink

if TYPE_CHECKING:
    from ..ports.audit import AuditOutcome

_log = logging.getLogger("command_ledger.audit")

_LEVELS: dict[str, int] = {
    "success": logging.INFO,
    "noop": logging.DEBUG,
    "failure": logging.WARNING,
    "fatal": logging.ERROR,
}


class LoggingAuditSink(IAuditSink):
    """Logs one line before and one after each operation."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _log

    def before(self, operation: str, description: str) -> None:
        self._log.debug("%s '%s' started", operation, description)

    def after(self, operation: str, description: str, outcome: AuditOutcome) -> None:
        self._log.log(
            _LEVELS.get(outcome, logging.INFO),
            "%s '%s' -> %s",
            operation,
            description,
            outcome,
        )
