"""Command base classes — reversible units of work against a receiver."""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..primitives.exceptions import (
    CommandError,
    CommandLedgerError,
    IllegalStateError,
)

logger = logging.getLogger("command_ledger.commands")


class CommandState(str, Enum):
    """Lifecycle of a single command instance."""

    PENDING = "PENDING"
    APPLIED = "APPLIED"
    REVERTED = "REVERTED"


class BaseCommand(BaseModel, ABC):
    """
    Shared lifecycle for sync and async commands.

    Commands are configured once, at construction, and are frozen from then
    on. Whatever a command needs to reverse itself (a prior value, a
    created id, ...) lives in private attributes, which pydantic keeps
    writable on frozen models.

    Lifecycle: ``PENDING -> APPLIED <-> REVERTED``. A command may be
    reverted and re-applied any number of times (redo), but never applied
    twice in a row nor reverted before it was applied.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    command_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    _state: CommandState = PrivateAttr(default=CommandState.PENDING)

    @property
    def state(self) -> CommandState:
        return self._state

    @property
    def is_applied(self) -> bool:
        return self._state is CommandState.APPLIED

    def describe(self) -> str:
        """Human-readable label used in logs, audit trails and UI menus."""
        return type(self).__name__

    def _ensure_can_apply(self) -> None:
        if self._state is CommandState.APPLIED:
            raise IllegalStateError(
                f"'{self.describe()}' is already applied; revert it before re-applying"
            )

    def _ensure_can_revert(self) -> None:
        if self._state is not CommandState.APPLIED:
            raise IllegalStateError(
                f"'{self.describe()}' cannot be reverted while {self._state.value}"
            )

    def _mark(self, state: CommandState) -> None:
        self._state = state
        logger.debug("%s -> %s", self.describe(), state.value)


class Command(BaseCommand):
    """
    Base for synchronous commands.

    Subclasses implement :meth:`_apply` and :meth:`_revert`. Any exception
    they raise is wrapped in :class:`CommandError`; errors of this package
    (e.g. :class:`IrrecoverableStateError` from a nested composite) pass
    through untouched.

    Example::

        class Rename(Command):
            new_name: str
            _old_name: str = PrivateAttr(default="")

            def _apply(self, context: Document) -> None:
                self._old_name = context.name
                context.name = self.new_name

            def _revert(self, context: Document) -> None:
                context.name = self._old_name
    """

    def apply(self, context: Any) -> None:
        """Perform the mutation on *context*."""
        self._ensure_can_apply()
        try:
            self._apply(context)
        except CommandLedgerError:
            raise
        except Exception as exc:
            raise CommandError(self, exc, phase="apply") from exc
        self._mark(CommandState.APPLIED)

    def revert(self, context: Any) -> None:
        """Undo exactly the effect of the most recent :meth:`apply`."""
        self._ensure_can_revert()
        try:
            self._revert(context)
        except CommandLedgerError:
            raise
        except Exception as exc:
            raise CommandError(self, exc, phase="revert") from exc
        self._mark(CommandState.REVERTED)

    @abstractmethod
    def _apply(self, context: Any) -> None: ...

    @abstractmethod
    def _revert(self, context: Any) -> None: ...


class AsyncCommand(BaseCommand):
    """Base for commands whose apply/revert await I/O.

    Same contract as :class:`Command`. Run them through an
    :class:`~command_ledger.history.AsyncHistoryLedger` so operations on one
    receiver never interleave.
    """

    async def apply(self, context: Any) -> None:
        """Perform the mutation on *context*."""
        self._ensure_can_apply()
        try:
            await self._apply(context)
        except CommandLedgerError:
            raise
        except Exception as exc:
            raise CommandError(self, exc, phase="apply") from exc
        self._mark(CommandState.APPLIED)

    async def revert(self, context: Any) -> None:
        """Undo exactly the effect of the most recent :meth:`apply`."""
        self._ensure_can_revert()
        try:
            await self._revert(context)
        except CommandLedgerError:
            raise
        except Exception as exc:
            raise CommandError(self, exc, phase="revert") from exc
        self._mark(CommandState.REVERTED)

    @abstractmethod
    async def _apply(self, context: Any) -> None: ...

    @abstractmethod
    async def _revert(self, context: Any) -> None: ...
