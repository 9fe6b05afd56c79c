"""Ledger configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_DEPTH = 100


class LedgerConfig(BaseModel):
    """Settings for a :class:`~command_ledger.history.HistoryLedger`.

    Usage::

        config = LedgerConfig.model_validate({"max_depth": 50})
        ledger = HistoryLedger.from_config(config)
    """

    model_config = ConfigDict(frozen=True)

    # Undoable entries kept; the oldest are evicted first.
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
