"""HistoryBuffer — flat list of entries plus an integer cursor."""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

from .entry import HistoryEntry

if TYPE_CHECKING:
    from ..commands.base import BaseCommand

logger = logging.getLogger("command_ledger.history")


class HistoryBuffer:
    """
    Linear undo/redo storage.

    ``entries[:cursor]`` is the undoable prefix, ``entries[cursor:]`` the
    redoable suffix. Pushing new work drops the suffix and evicts from the
    front once the prefix exceeds ``max_depth``. Positions are plain
    indices; nothing else tracks them.
    """

    def __init__(self, max_depth: int) -> None:
        self._max_depth = max_depth
        self._entries: list[HistoryEntry] = []
        self._cursor = 0
        self._sequence = itertools.count(1)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries)

    def undo_target(self) -> HistoryEntry | None:
        """Entry the next undo would revert, or *None*."""
        return self._entries[self._cursor - 1] if self._cursor > 0 else None

    def redo_target(self) -> HistoryEntry | None:
        """Entry the next redo would re-apply, or *None*."""
        if self._cursor < len(self._entries):
            return self._entries[self._cursor]
        return None

    def push(self, command: BaseCommand) -> HistoryEntry:
        """Append *command* after the cursor, discarding the redo branch."""
        stale = len(self._entries) - self._cursor
        if stale:
            del self._entries[self._cursor :]
            logger.debug("Discarded %d redoable entries", stale)

        entry = HistoryEntry(command=command, sequence=next(self._sequence))
        self._entries.append(entry)
        self._cursor += 1

        overflow = self._cursor - self._max_depth
        if overflow > 0:
            evicted = self._entries[:overflow]
            del self._entries[:overflow]
            self._cursor -= overflow
            logger.debug(
                "Evicted %d oldest entries (max_depth=%d): %s",
                overflow,
                self._max_depth,
                [e.describe() for e in evicted],
            )
        return entry

    def step_back(self) -> None:
        self._cursor -= 1

    def step_forward(self) -> None:
        self._cursor += 1

    def undo_labels(self) -> list[str]:
        """Labels of undoable entries, most recent first."""
        return [e.describe() for e in reversed(self._entries[: self._cursor])]

    def redo_labels(self) -> list[str]:
        """Labels of redoable entries, next redo first."""
        return [e.describe() for e in self._entries[self._cursor :]]

    def clear(self) -> None:
        """Drop all entries. Sequence numbers keep counting."""
        self._entries.clear()
        self._cursor = 0
