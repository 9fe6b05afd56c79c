"""Composite (macro) commands — ordered groups applied as one atomic unit."""

from __future__ import annotations

import asyncio
import logging
from inspect import isawaitable
from typing import Any

from pydantic import PrivateAttr

from ..primitives.exceptions import (
    CommandError,
    IllegalStateError,
    IrrecoverableStateError,
)
from .base import AsyncCommand, BaseCommand, Command

logger = logging.getLogger("command_ledger.commands")


def _label(label: str | None, children: tuple[BaseCommand, ...]) -> str:
    if label:
        return label
    return "Composite[" + ", ".join(child.describe() for child in children) + "]"


def _reason(exc: CommandError | IllegalStateError) -> str:
    return exc.description if isinstance(exc, CommandError) else str(exc)


def _rollback_failed(
    child: BaseCommand, reason: str, exc: Exception
) -> IrrecoverableStateError:
    logger.critical(
        "Rollback of '%s' failed while recovering from '%s': %s",
        child.describe(),
        reason,
        exc,
    )
    return IrrecoverableStateError(
        f"Rollback of '{child.describe()}' failed while recovering from "
        f"'{reason}'; context state is indeterminate",
        cause=exc,
    )


class CompositeCommand(Command):
    """
    Applies children in order and reverts them in reverse order.

    If a child fails during :meth:`apply`, the children applied before it
    are reverted (last first) and the child's original
    :class:`CommandError` propagates; :attr:`failed_index` tells which
    child it was. Should one of those reverts fail as well,
    :class:`IrrecoverableStateError` is raised instead.

    A failing child during :meth:`revert` stops the walk immediately and
    its error propagates; the composite stays ``APPLIED``.

    A child raising :class:`IrrecoverableStateError` (a nested composite
    whose own rollback failed) propagates as is: siblings applied before
    it are left applied, since the context can no longer be trusted.
    """

    commands: tuple[Command, ...] = ()
    label: str | None = None

    _failed_index: int | None = PrivateAttr(default=None)

    @property
    def failed_index(self) -> int | None:
        """Index of the child that failed the last apply, if any."""
        return self._failed_index

    def describe(self) -> str:
        return _label(self.label, self.commands)

    def _apply(self, context: Any) -> None:
        self._failed_index = None
        applied: list[Command] = []
        for index, child in enumerate(self.commands):
            try:
                child.apply(context)
            except (CommandError, IllegalStateError) as exc:
                self._failed_index = index
                logger.warning(
                    "'%s' failed at child %d ('%s'); rolling back %d applied",
                    self.describe(),
                    index,
                    _reason(exc),
                    len(applied),
                )
                self._rollback(applied, context, _reason(exc))
                raise
            applied.append(child)

    def _rollback(
        self, applied: list[Command], context: Any, reason: str
    ) -> None:
        for child in reversed(applied):
            try:
                child.revert(context)
            except Exception as exc:
                raise _rollback_failed(child, reason, exc) from exc

    def _revert(self, context: Any) -> None:
        for child in reversed(self.commands):
            child.revert(context)


class AsyncCompositeCommand(AsyncCommand):
    """Async counterpart of :class:`CompositeCommand`.

    Children may mix :class:`Command` and :class:`AsyncCommand`; they are
    still run strictly one after another.

    Cancelling the task while a child runs rolls back the children applied
    before it, then re-raises ``CancelledError``. A cancellation or failure
    during that rollback raises :class:`IrrecoverableStateError`.
    As with :class:`CompositeCommand`, an :class:`IrrecoverableStateError`
    from a child propagates without rolling back its earlier siblings.
    """

    commands: tuple[BaseCommand, ...] = ()
    label: str | None = None

    _failed_index: int | None = PrivateAttr(default=None)

    @property
    def failed_index(self) -> int | None:
        """Index of the child that failed the last apply, if any."""
        return self._failed_index

    def describe(self) -> str:
        return _label(self.label, self.commands)

    async def _apply(self, context: Any) -> None:
        self._failed_index = None
        applied: list[BaseCommand] = []
        for index, child in enumerate(self.commands):
            try:
                await _call(child, "apply", context)
            except (CommandError, IllegalStateError) as exc:
                self._failed_index = index
                logger.warning(
                    "'%s' failed at child %d ('%s'); rolling back %d applied",
                    self.describe(),
                    index,
                    _reason(exc),
                    len(applied),
                )
                await self._rollback(applied, context, _reason(exc))
                raise
            except asyncio.CancelledError:
                self._failed_index = index
                logger.warning(
                    "'%s' cancelled at child %d; rolling back %d applied",
                    self.describe(),
                    index,
                    len(applied),
                )
                await self._rollback(applied, context, f"cancelled at child {index}")
                raise
            applied.append(child)

    async def _rollback(
        self, applied: list[BaseCommand], context: Any, reason: str
    ) -> None:
        for child in reversed(applied):
            try:
                await _call(child, "revert", context)
            except (Exception, asyncio.CancelledError) as exc:
                raise _rollback_failed(child, reason, exc) from exc

    async def _revert(self, context: Any) -> None:
        for child in reversed(self.commands):
            await _call(child, "revert", context)


async def _call(command: BaseCommand, operation: str, context: Any) -> None:
    """Invoke ``apply``/``revert`` on a sync or async command."""
    result = getattr(command, operation)(context)
    if isawaitable(result):
        await result
