"""Command handler framework for chatrelay.

Provides the CommandHandlerBase ABC, the Cmd/Command value types,
the HandlerContext dependency container, the deprecated
LegacyCommandHandler shim, and HandlerRegistry for mapping keywords
to handlers.
"""

from .base import (
    Cmd,
    Command,
    CommandCategory,
    CommandHandlerBase,
    HandlerContext,
    HandlerLifecycle,
    Transport,
    split_args,
)
from .legacy import LegacyCommand, LegacyCommandHandler
from .registry import BUILTIN_COMMANDS, HandlerRegistry

__all__ = [
    "BUILTIN_COMMANDS",
    "Cmd",
    "Command",
    "CommandCategory",
    "CommandHandlerBase",
    "HandlerContext",
    "HandlerLifecycle",
    "HandlerRegistry",
    "LegacyCommand",
    "LegacyCommandHandler",
    "Transport",
    "split_args",
]
