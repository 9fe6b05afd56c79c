"""HistoryEntry — one slot of a ledger's history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..commands.base import BaseCommand


@dataclass(frozen=True)
class HistoryEntry:
    """A command plus its position in the order of submission.

    ``sequence`` grows monotonically per ledger and is never reused, even
    after eviction or truncation.
    """

    command: BaseCommand
    sequence: int
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def describe(self) -> str:
        return self.command.describe()
