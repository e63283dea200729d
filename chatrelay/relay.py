"""Wiring between a transport session and the command handlers.

The transport (XMPP/Signal session) calls create_registry() once it is
connected, passing itself and the handler classes to install, then
feeds every inbound line to HandlerRegistry.dispatch_line().
"""

from typing import Callable, Iterable, Optional

import structlog

from .commands.base import CommandHandlerBase, HandlerContext, Transport
from .commands.registry import HandlerRegistry
from .config import Config, get_config
from .logging_config import setup_logging
from .resources import StringResources

logger = structlog.get_logger("chatrelay.dispatch")

HandlerFactory = Callable[[HandlerContext], CommandHandlerBase]


def load_config() -> Config:
    """Load the process-level Config with logging in place.

    Logging runs on defaults while settings load, is reconfigured from
    them, and then the settings are validated so problems end up in
    the configured log files.
    """
    setup_logging()
    config = get_config()
    setup_logging(config)
    config.validate()
    return config


def create_context(transport: Transport, config: Optional[Config] = None) -> HandlerContext:
    """Build the HandlerContext shared by all handlers of one relay.

    Without a config the process-level one is loaded via load_config().
    A caller passing its own Config has set up logging already.
    """
    if config is None:
        config = load_config()
    return HandlerContext(
        transport=transport,
        config=config,
        strings=StringResources.from_config(config),
    )


def create_registry(
    transport: Transport,
    handler_factories: Iterable[HandlerFactory] = (),
    config: Optional[Config] = None,
) -> HandlerRegistry:
    """Create a registry with one instance of every handler.

    Args:
        transport: Outbound side of the connected session.
        handler_factories: Callables (usually handler classes) taking
            the shared HandlerContext.
        config: Settings; defaults to the process-level Config.
    """
    ctx = create_context(transport, config)
    registry = HandlerRegistry(ctx, disabled=ctx.config.disabled_commands)
    for factory in handler_factories:
        registry.register(factory(ctx))
    logger.info(
        "handlers_registered",
        handlers=len(registry.handlers),
        keywords=len(registry.keywords),
    )
    return registry
