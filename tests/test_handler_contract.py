"""Shared lifecycle/help contract every concrete handler must satisfy.

Concrete handler test modules subclass HandlerContract and implement
make_handler(). The contract checks that clean_up() and stop() are
safe without setup(), safe to repeat, and never release a resource
twice.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chatrelay.commands.base import Cmd, CommandCategory, CommandHandlerBase, HandlerContext
from chatrelay.commands.legacy import LegacyCommandHandler


class HandlerContract:
    """Mixin with contract tests; subclasses provide make_handler()."""

    def make_handler(self, ctx: HandlerContext) -> CommandHandlerBase:
        raise NotImplementedError

    def _ctx(self):
        return HandlerContext(transport=AsyncMock())

    @pytest.mark.asyncio
    async def test_clean_up_without_setup(self):
        handler = self.make_handler(self._ctx())
        await handler.clean_up()

    @pytest.mark.asyncio
    async def test_clean_up_twice(self):
        handler = self.make_handler(self._ctx())
        await handler.setup()
        await handler.clean_up()
        await handler.clean_up()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        handler = self.make_handler(self._ctx())
        await handler.stop()
        await handler.stop()

    @pytest.mark.asyncio
    async def test_setup_cleanup_cycle_repeatable(self):
        handler = self.make_handler(self._ctx())
        for _ in range(2):
            await handler.activate()
            await handler.deactivate()

    def test_help_is_none_or_list_of_strings(self):
        handler = self.make_handler(self._ctx())
        lines = handler.help()
        assert lines is None or all(isinstance(line, str) for line in lines)

    def test_declares_at_least_one_command(self):
        handler = self.make_handler(self._ctx())
        assert handler.commands
        assert all(isinstance(cmd, Cmd) for cmd in handler.commands)


# -------------------------------------------------------------------
# Handlers checked against the contract
# -------------------------------------------------------------------

class SmsReceiverHandler(CommandHandlerBase):
    """Handler that registers a receiver in setup() and releases it."""

    def __init__(self, ctx, receiver_registry):
        super().__init__(ctx, CommandCategory.MESSAGE, [Cmd("sms", ("s",))])
        self._registry = receiver_registry
        self._receiver = None

    async def setup(self):
        if self._receiver is None:
            self._receiver = object()
            self._registry.register(self._receiver)

    async def clean_up(self):
        if self._receiver is not None:
            self._registry.unregister(self._receiver)
            self._receiver = None

    async def execute(self, command):
        await self.send("queued", command.reply_to)

    def help(self):
        return ["sms:<contact>:<message> - send an SMS"]


class PingHandler(LegacyCommandHandler):
    def __init__(self, ctx):
        super().__init__(ctx, CommandCategory.SYSTEM, [Cmd("ping")])

    async def execute_legacy(self, cmd, args):
        await self.send("pong")

    def help(self):
        return None


class TestSmsReceiverHandlerContract(HandlerContract):
    def make_handler(self, ctx):
        self.receivers = MagicMock()
        return SmsReceiverHandler(ctx, self.receivers)

    @pytest.mark.asyncio
    async def test_release_happens_once(self):
        handler = self.make_handler(self._ctx())
        await handler.setup()
        await handler.setup()
        await handler.clean_up()
        await handler.clean_up()
        assert self.receivers.register.call_count == 1
        assert self.receivers.unregister.call_count == 1


class TestPingHandlerContract(HandlerContract):
    def make_handler(self, ctx):
        return PingHandler(ctx)
