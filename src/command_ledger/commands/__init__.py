"""Commands — reversible units of work and their composites."""

from __future__ import annotations

from .base import AsyncCommand, BaseCommand, Command, CommandState
from .composite import AsyncCompositeCommand, CompositeCommand
from .simple import FunctionCommand, SetAttributeCommand, SetItemCommand

__all__ = [
    "AsyncCommand",
    "AsyncCompositeCommand",
    "BaseCommand",
    "Command",
    "CommandState",
    "CompositeCommand",
    "FunctionCommand",
    "SetAttributeCommand",
    "SetItemCommand",
]
