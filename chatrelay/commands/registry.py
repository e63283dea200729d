"""Keyword lookup and dispatch for command handlers.

HandlerRegistry maps every Cmd name and alias to the handler that
declared it, runs the matching handler for each Command, and fans the
relay lifecycle (setup / clean up / stop) out to all handlers.

The built-in keywords "help" and "stop" are answered by the registry
itself and cannot be claimed by a handler.
"""

from __future__ import annotations

from typing import Awaitable, Dict, Iterable, List, Optional, Tuple

import structlog

from ..exceptions import ChatRelayError, MalformedCommandError, TransportError
from ..messages import ChatMessage, make_bold
from .base import Command, CommandCategory, CommandHandlerBase, HandlerContext, OutboundMessage

logger = structlog.get_logger("chatrelay.dispatch")

BUILTIN_COMMANDS = frozenset({"help", "stop"})


class HandlerRegistry:
    """Maps command keywords to handlers and dispatches Commands.

    Commands are executed one at a time by the caller; the registry
    does not schedule or queue anything.

    Args:
        ctx: HandlerContext shared with the registered handlers.
        disabled: Keywords that must not be registered.
    """

    def __init__(self, ctx: HandlerContext, disabled: Iterable[str] = ()):
        self.ctx = ctx
        self._disabled = frozenset(disabled)
        self._handlers: Dict[str, CommandHandlerBase] = {}
        self._registered: List[CommandHandlerBase] = []

    def register(self, handler: CommandHandlerBase) -> None:
        """Register every keyword of every Cmd the handler declares.

        A keyword already claimed by another handler is reassigned to
        the new one with a warning.
        """
        for cmd in handler.commands:
            for keyword in cmd.keywords:
                if keyword in BUILTIN_COMMANDS:
                    logger.warning(
                        "builtin_override_blocked",
                        command=keyword,
                        handler=type(handler).__name__,
                    )
                    continue
                if keyword in self._disabled:
                    logger.info("command_disabled", command=keyword)
                    continue
                if keyword in self._handlers:
                    logger.warning(
                        "command_handler_conflict",
                        command=keyword,
                        handler=type(handler).__name__,
                        previous=type(self._handlers[keyword]).__name__,
                    )
                self._handlers[keyword] = handler
        if handler not in self._registered:
            self._registered.append(handler)

    def get(self, keyword: str) -> Optional[CommandHandlerBase]:
        """Look up the handler for a keyword (case-sensitive)."""
        return self._handlers.get(keyword)

    @property
    def keywords(self) -> frozenset:
        """All registered keywords, aliases included."""
        return frozenset(self._handlers.keys())

    @property
    def handlers(self) -> Tuple[CommandHandlerBase, ...]:
        return tuple(self._registered)

    # --- Dispatch ---

    async def dispatch(self, command: Command) -> bool:
        """Execute a command with its handler.

        The built-ins "help" and "stop" run under the same error
        containment as handler commands.

        Returns:
            True if a handler (or built-in) ran to completion, False
            for unknown keywords and aborted commands.
        """
        keyword = command.command
        logger.debug(
            "command_routing",
            command=keyword,
            has_args=bool(command.all_arguments),
        )

        if keyword == "help":
            return await self._run(command, "builtin", self.send_help(command))
        if keyword == "stop":
            return await self._run(command, "builtin", self.stop_all())

        handler = self._handlers.get(keyword)
        if handler is None:
            logger.info("unknown_command", command=keyword)
            await self._reply(
                self.ctx.strings.get("chat_unknown_command", keyword),
                command.reply_to,
            )
            return False

        return await self._run(command, type(handler).__name__, handler.execute(command))

    async def _run(self, command: Command, handler_name: str, work: Awaitable[None]) -> bool:
        """Await one command's work; any failure aborts only that command."""
        keyword = command.command
        try:
            await work
        except TransportError as e:
            logger.error(
                "command_reply_failed",
                command=keyword,
                handler=handler_name,
                error=str(e),
                retryable=e.is_retryable,
            )
            return False
        except ChatRelayError as e:
            logger.error(
                "command_aborted",
                command=keyword,
                handler=handler_name,
                error=str(e),
                category=e.category.value,
                module=e.module,
            )
            await self._reply(
                self.ctx.strings.get("chat_error", keyword, e.message),
                command.reply_to,
            )
            return False
        except Exception as e:
            logger.error(
                "command_crashed",
                command=keyword,
                handler=handler_name,
                error=str(e),
                exc_info=True,
            )
            await self._reply(
                self.ctx.strings.get("chat_error", keyword, str(e)),
                command.reply_to,
            )
            return False
        return True

    async def dispatch_line(self, raw_line: str, reply_to: Optional[str] = None) -> bool:
        """Parse a raw "keyword:arguments" line and dispatch it."""
        try:
            command = Command.parse(raw_line, reply_to)
        except MalformedCommandError as e:
            logger.warning("malformed_command", error=str(e))
            return False
        return await self.dispatch(command)

    async def _deliver(self, message: OutboundMessage, to: Optional[str]) -> None:
        destination = to if to is not None else self.ctx.default_reply_to
        await self.ctx.transport.send(message, destination)

    async def _reply(self, message: OutboundMessage, to: Optional[str]) -> None:
        """Send a dispatcher-level reply; delivery failures are only logged."""
        try:
            await self._deliver(message, to)
        except ChatRelayError as e:
            logger.error("dispatch_reply_failed", error=str(e))

    # --- Help ---

    def help_lines(self) -> List[str]:
        """Summary of all keywords, grouped by category."""
        lines: List[str] = []
        for category in CommandCategory:
            members = [h for h in self._registered if h.category is category]
            if not members:
                continue
            lines.append(make_bold(category.value.capitalize()))
            lines.extend(h.commands_as_string() for h in members)
        return lines

    async def send_help(self, command: Command) -> None:
        """Answer "help" (summary) or "help:<keyword>" (handler help)."""
        topic = command.all_arguments.strip()
        if topic:
            handler = self._handlers.get(topic)
            if handler is None:
                await self._reply(
                    self.ctx.strings.get("chat_unknown_command", topic),
                    command.reply_to,
                )
                return
            await handler.send_help(command.reply_to)
            return

        msg = ChatMessage()
        msg.append_line(self.ctx.strings.get("chat_help_header"))
        msg.add_lines(self.help_lines())
        await self._deliver(msg, command.reply_to)

    # --- Lifecycle fan-out ---

    async def setup_all(self) -> None:
        for handler in self._registered:
            try:
                await handler.activate()
            except Exception as e:
                logger.error("handler_setup_error", handler=type(handler).__name__, error=str(e))

    async def clean_up_all(self) -> None:
        for handler in self._registered:
            try:
                await handler.deactivate()
            except Exception as e:
                logger.error("handler_cleanup_error", handler=type(handler).__name__, error=str(e))

    async def stop_all(self) -> None:
        """Ask every handler to abandon ongoing work."""
        logger.info("stop_requested", handlers=len(self._registered))
        for handler in self._registered:
            try:
                await handler.halt()
            except Exception as e:
                logger.error("handler_stop_error", handler=type(handler).__name__, error=str(e))
