"""Custom exception hierarchy for chatrelay.

Provides error classification for the command layer so the dispatcher
can decide which failures abort a single command and which ones are
worth reporting or retrying further up.

Hierarchy:
    ChatRelayError
      ├─ CommandNotImplementedError  (programming error, permanent)
      ├─ MalformedCommandError       (bad inbound line, permanent)
      ├─ TransportError              (delivery failure, transient)
      ├─ ResourceNotFoundError       (unknown string id, permanent)
      └─ ConfigurationError          (environment, infrastructure)
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""
    TRANSIENT = "transient"          # Worth retrying (network hiccup, session drop)
    PERMANENT = "permanent"          # Not worth retrying (bad input, missing override)
    INFRASTRUCTURE = "infrastructure"  # Missing files, env issues


class ChatRelayError(Exception):
    """Base exception for all chatrelay errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification for retry/escalation decisions.
        module: Originating module name (e.g. "commands.legacy").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Command layer exceptions
# ---------------------------------------------------------------------------

class CommandNotImplementedError(ChatRelayError):
    """A handler was invoked through an entry point it never overrode.

    Signals a programming error. The dispatcher aborts the current
    command and keeps running.

    Attributes:
        command: Keyword of the command that was being executed.
        handler: Class name of the handler.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        handler: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        self.handler = handler
        super().__init__(
            message or "Must implement execute(command)",
            category=category,
            module=module or "commands",
            **context,
        )


class MalformedCommandError(ChatRelayError):
    """An inbound line could not be turned into a Command."""

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, category=category, module=module or "commands.parse", **context
        )


# ---------------------------------------------------------------------------
# Transport exceptions
# ---------------------------------------------------------------------------

class TransportError(ChatRelayError):
    """Outbound delivery failed.

    Raised by transport implementations. The command layer never
    catches or retries it; it reaches the dispatcher unchanged.

    Attributes:
        recipient: Destination the message was addressed to (if known).
    """

    def __init__(
        self,
        message: str = "",
        *,
        recipient: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.recipient = recipient
        super().__init__(
            message, category=category, module=module or "transport", **context
        )


# ---------------------------------------------------------------------------
# Resource and configuration exceptions
# ---------------------------------------------------------------------------

class ResourceNotFoundError(ChatRelayError):
    """A localized string id is unknown or could not be formatted.

    Attributes:
        string_id: The identifier that was looked up.
    """

    def __init__(
        self,
        message: str = "",
        *,
        string_id: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.string_id = string_id
        super().__init__(
            message, category=category, module=module or "resources", **context
        )


class ConfigurationError(ChatRelayError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )
