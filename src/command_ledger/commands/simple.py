"""Ready-made simple commands."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import PrivateAttr

from .base import Command


class FunctionCommand(Command):
    """Adapts a pair of callables into a command.

    Both callables receive the context. Handy for one-off operations
    where a dedicated subclass would be noise::

        FunctionCommand(
            label="Append item",
            do=lambda items: items.append("x"),
            undo=lambda items: items.pop(),
        )
    """

    do: Callable[[Any], Any]
    undo: Callable[[Any], Any]
    label: str = "FunctionCommand"

    def describe(self) -> str:
        return self.label

    def _apply(self, context: Any) -> None:
        self.do(context)

    def _revert(self, context: Any) -> None:
        self.undo(context)


class SetAttributeCommand(Command):
    """Sets ``context.<attribute>`` to *value*, remembering the prior value.

    If the attribute did not exist before, revert deletes it again.
    """

    attribute: str
    value: Any
    label: str | None = None

    _previous: Any = PrivateAttr(default=None)
    _existed: bool = PrivateAttr(default=False)

    def describe(self) -> str:
        return self.label or f"Set {self.attribute} = {self.value!r}"

    def _apply(self, context: Any) -> None:
        self._existed = hasattr(context, self.attribute)
        self._previous = getattr(context, self.attribute, None)
        setattr(context, self.attribute, self.value)

    def _revert(self, context: Any) -> None:
        if self._existed:
            setattr(context, self.attribute, self._previous)
        else:
            delattr(context, self.attribute)


class SetItemCommand(Command):
    """Sets ``context[key]`` on a mutable mapping, remembering the prior value.

    If the key was absent before, revert removes it again.
    """

    key: Any
    value: Any
    label: str | None = None

    _previous: Any = PrivateAttr(default=None)
    _existed: bool = PrivateAttr(default=False)

    def describe(self) -> str:
        return self.label or f"Set [{self.key!r}] = {self.value!r}"

    def _apply(self, context: Any) -> None:
        self._existed = self.key in context
        self._previous = context.get(self.key)
        context[self.key] = self.value

    def _revert(self, context: Any) -> None:
        if self._existed:
            context[self.key] = self._previous
        else:
            del context[self.key]
