"""Base classes for the command handler framework.

Defines the request/descriptor value types and the abstract handler
contract. Concrete handlers (SMS, contacts, location, ...) extend
CommandHandlerBase, declare the Cmd descriptors they answer to, and
are registered with a HandlerRegistry that maps keywords to handlers.

Key classes:
    Cmd: Keyword + aliases a handler answers to.
    Command: One parsed user request (keyword, argument tail, reply-to).
    HandlerContext: Dependency container shared by all handlers.
    CommandHandlerBase: ABC that every handler implements.

Key functions:
    split_args: Split an argument tail on ":" with a [""] sentinel.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

import structlog

from ..exceptions import MalformedCommandError
from ..messages import ChatMessage, make_bold, make_italic
from ..models import ResolvedContact
from ..resources import StringResources

if TYPE_CHECKING:
    from ..config import Config

logger = structlog.get_logger("chatrelay.commands")

ARG_SEPARATOR = ":"

OutboundMessage = Union[str, ChatMessage]
Candidate = Union[ResolvedContact, Tuple[str, str]]


def split_args(args: Optional[str]) -> List[str]:
    """Split an argument tail on ":" into a list of tokens.

    Empty tokens are dropped ("a::b" gives ["a", "b"]). When no token
    remains the result is [""] so callers can always read element 0.
    """
    tokens = [t for t in (args or "").split(ARG_SEPARATOR) if t]
    return tokens or [""]


class CommandCategory(str, Enum):
    """Grouping of handlers for help display."""
    MESSAGE = "message"
    CONTACTS = "contacts"
    GEO = "geo"
    SYSTEM = "system"
    COPY = "copy"
    MEDIA = "media"


class HandlerLifecycle(str, Enum):
    """Activation state of a handler.

    Flow: UNINITIALIZED -> ACTIVE (setup) -> INACTIVE (clean_up/stop),
    repeatable.
    """
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True, eq=False)
class Cmd:
    """A keyword a handler responds to, plus alternate spellings.

    Attributes:
        name: Primary keyword; identity of the descriptor.
        aliases: Alternate keywords, matched case-sensitively.
    """
    name: str
    aliases: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.name:
            raise ValueError("Cmd name must not be empty")
        aliases = self.aliases
        if isinstance(aliases, str):
            aliases = (aliases,)
        object.__setattr__(self, "aliases", tuple(aliases))

    @property
    def keywords(self) -> Tuple[str, ...]:
        return (self.name, *self.aliases)

    def matches(self, keyword: str) -> bool:
        return keyword in self.keywords

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Cmd):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        if self.aliases:
            return f"{self.name} ({', '.join(self.aliases)})"
        return self.name


@dataclass(frozen=True)
class Command:
    """A single user request.

    Attributes:
        command: The keyword, case preserved.
        all_arguments: Everything after the first ":"; "" if none.
        reply_to: Destination for output; None means the default
            notification address.
    """
    command: str
    all_arguments: str = ""
    reply_to: Optional[str] = None

    def __post_init__(self):
        if not self.command:
            raise ValueError("Command keyword must not be empty")
        if ARG_SEPARATOR in self.command or self.command != self.command.strip():
            raise ValueError(f"Invalid command keyword: {self.command!r}")
        if self.all_arguments is None:
            object.__setattr__(self, "all_arguments", "")

    @classmethod
    def parse(cls, raw_line: str, reply_to: Optional[str] = None) -> "Command":
        """Build a Command from a raw "keyword:arguments" line."""
        line = (raw_line or "").lstrip()
        keyword, _, rest = line.partition(ARG_SEPARATOR)
        keyword = keyword.strip()
        if not keyword:
            raise MalformedCommandError(
                "Command line has no keyword", line=line[:50]
            )
        return cls(keyword, rest, reply_to)

    @property
    def raw_command_and_args(self) -> str:
        return f"{self.command}{ARG_SEPARATOR}{self.all_arguments}"

    @property
    def arguments(self) -> List[str]:
        return split_args(self.all_arguments)


@runtime_checkable
class Transport(Protocol):
    """Outbound side of the chat session.

    ``to=None`` asks the transport for its default notification
    address. Delivery errors are raised, typically as TransportError.
    """

    async def send(self, message: OutboundMessage, to: Optional[str]) -> None:
        ...


@dataclass
class HandlerContext:
    """Dependency container for command handlers.

    Passed to every handler's constructor, so all handlers of one
    relay share the same transport, settings and strings without any
    process-wide state.
    """

    transport: Transport
    config: Optional["Config"] = None
    strings: StringResources = field(default_factory=StringResources)

    @property
    def default_reply_to(self) -> Optional[str]:
        if self.config is None:
            return None
        return self.config.notification_address


class CommandHandlerBase(ABC):
    """Abstract base class for command handlers.

    Subclasses pass their category and Cmd descriptors to __init__ and
    implement execute() and help(). The reply destination is threaded
    through every helper as ``to``; when it is None the context's
    default reply address is used.

    Args:
        ctx: Shared HandlerContext dependency container.
        category: Grouping used by the help display.
        commands: Descriptors this handler answers to.
    """

    def __init__(
        self,
        ctx: HandlerContext,
        category: CommandCategory,
        commands: Sequence[Cmd],
    ):
        self.ctx = ctx
        self._category = CommandCategory(category)
        self._commands: Tuple[Cmd, ...] = tuple(commands)
        for cmd in self._commands:
            if not isinstance(cmd, Cmd):
                raise TypeError(f"Expected Cmd, got {type(cmd).__name__}")
        self._lifecycle = HandlerLifecycle.UNINITIALIZED

    @property
    def commands(self) -> Tuple[Cmd, ...]:
        return self._commands

    @property
    def category(self) -> CommandCategory:
        return self._category

    @property
    def lifecycle(self) -> HandlerLifecycle:
        return self._lifecycle

    # --- Contract ---

    @abstractmethod
    async def execute(self, command: Command) -> None:
        """Run the command and send any output to command.reply_to."""
        ...

    @abstractmethod
    def help(self) -> Optional[List[str]]:
        """Return help lines (may contain markup), or None if there is no help."""
        ...

    async def stop(self) -> None:
        """Abandon ongoing work started by this handler.

        Called when the user sends "stop". Does not interrupt an
        execute() that is already running.
        """

    async def setup(self) -> None:
        """Acquire what the handler needs while the relay is connected.

        May be called more than once; implementations must not
        register listeners twice.
        """

    async def clean_up(self) -> None:
        """Release what setup() acquired.

        Must be safe without a prior setup() and when called twice.
        """

    # --- Lifecycle wrappers used by the registry ---

    async def activate(self) -> None:
        await self.setup()
        self._lifecycle = HandlerLifecycle.ACTIVE

    async def deactivate(self) -> None:
        await self.clean_up()
        self._lifecycle = HandlerLifecycle.INACTIVE

    async def halt(self) -> None:
        await self.stop()
        if self._lifecycle is HandlerLifecycle.ACTIVE:
            self._lifecycle = HandlerLifecycle.INACTIVE

    # --- Shared helpers ---

    def _resolve_destination(self, to: Optional[str]) -> Optional[str]:
        return to if to is not None else self.ctx.default_reply_to

    def get_string(self, string_id: str, *args) -> str:
        return self.ctx.strings.get(string_id, *args)

    async def send(self, message: OutboundMessage, to: Optional[str] = None) -> None:
        """Deliver a message through the transport.

        No buffering and no retry: transport errors propagate.
        """
        destination = self._resolve_destination(to)
        logger.debug(
            "command_reply",
            handler=type(self).__name__,
            to=destination or "default",
            length=len(str(message)),
        )
        await self.ctx.transport.send(message, destination)

    async def send_string(self, string_id: str, *args, to: Optional[str] = None) -> None:
        """send() wrapper that looks the text up in the string resources."""
        await self.send(self.get_string(string_id, *args), to)

    async def send_help(self, to: Optional[str] = None) -> None:
        """Send this handler's help lines as one message; no-op without help."""
        lines = self.help()
        if lines is None:
            return
        msg = ChatMessage()
        msg.add_lines(lines)
        await self.send(msg, to)

    def split_args(self, args: Optional[str]) -> List[str]:
        return split_args(args)

    def commands_as_string(self) -> str:
        """Render the descriptors as "sms (s, text), call, "."""
        # Trailing separator is part of the established display format
        return "".join(f"{cmd}, " for cmd in self._commands)

    def make_bold(self, text: str) -> str:
        return make_bold(text)

    def make_italic(self, text: str) -> str:
        return make_italic(text)

    async def ask_for_more_details(
        self, candidates: Iterable[Candidate], to: Optional[str] = None
    ) -> None:
        """Ask the user to pick one of several ambiguous matches.

        Sends one message: the localized "please specify" header, then
        one "<name> - <number>" line per candidate in input order.
        """
        msg = ChatMessage(self.get_string("chat_specify_details"))
        msg.new_line()
        for candidate in candidates:
            if isinstance(candidate, ResolvedContact):
                msg.append_line(candidate.display())
            else:
                name, number = candidate
                msg.append_line(f"{name} - {number}")
        await self.send(msg, to)
