"""Compatibility layer for handlers using the two-argument convention.

Older handlers implement ``execute_legacy(cmd, args)`` and reply with
``send(message)`` without a destination, relying on the reply target
of the command currently being executed. LegacyCommandHandler keeps
that working on top of CommandHandlerBase. New handlers subclass
CommandHandlerBase and implement ``execute(command)`` directly.

Deprecated: remove once every handler overrides execute(command).
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Optional

import structlog

from ..exceptions import CommandNotImplementedError
from .base import Command, CommandHandlerBase, OutboundMessage, Transport

logger = structlog.get_logger("chatrelay.commands")


@dataclass(frozen=True)
class LegacyCommand(Command):
    """Command built from a raw (cmd, args, reply_to) triple.

    respond() goes straight to the transport, bypassing any handler
    reply bookkeeping.
    """

    transport: Optional[Transport] = field(default=None, compare=False, repr=False)

    @classmethod
    def wrap(
        cls,
        transport: Transport,
        cmd: str,
        args: Optional[str],
        reply_to: Optional[str],
    ) -> "LegacyCommand":
        return cls(cmd, args or "", reply_to, transport)

    async def respond(self, message: OutboundMessage) -> None:
        if self.transport is None:
            raise RuntimeError("LegacyCommand has no transport to respond through")
        await self.transport.send(message, self.reply_to)


class LegacyCommandHandler(CommandHandlerBase):
    """Handler base that keeps the old execute(cmd, args) entry point.

    execute(command) stores the reply destination in
    ``last_reply_target`` and delegates to execute_legacy(). Helpers
    called without ``to`` reply to that stored target.

    The stored target is per instance: one command at a time per
    handler.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.last_reply_target: Optional[str] = None

    async def execute(self, command: Command) -> None:
        self.last_reply_target = command.reply_to
        await self.execute_legacy(command.command, command.all_arguments)

    async def execute_legacy(self, cmd: str, args: str) -> None:
        """Run the command; args is "" when none were given."""
        raise CommandNotImplementedError(
            f"{type(self).__name__} must implement execute(command)",
            command=cmd,
            handler=type(self).__name__,
        )

    async def execute_raw(
        self, cmd: str, args: Optional[str], reply_to: Optional[str]
    ) -> None:
        """One-shot entry point taking the raw three-string form."""
        warnings.warn(
            "execute_raw() is deprecated, build a Command and call execute()",
            DeprecationWarning,
            stacklevel=2,
        )
        logger.debug("legacy_execute", handler=type(self).__name__, command=cmd)
        await self.execute(LegacyCommand.wrap(self.ctx.transport, cmd, args, reply_to))

    def _resolve_destination(self, to: Optional[str]) -> Optional[str]:
        if to is None:
            to = self.last_reply_target
        return super()._resolve_destination(to)
