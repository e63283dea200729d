"""Formatted outbound messages.

ChatMessage is a small builder for multi-line replies with inline
markup. Markup follows the chat-client markdown most relays render:
``*bold*`` and ``_italic_``. Transports that cannot render markup use
``plain_text`` instead of ``text``.
"""

import re
from typing import Iterable, List, Optional

_BOLD = "*"
_ITALIC = "_"

_BOLD_PATTERN = re.compile(r"\*(.+?)\*", re.DOTALL)
_ITALIC_PATTERN = re.compile(r"(?<!\w)_(.+?)_(?!\w)", re.DOTALL)


def make_bold(text: str) -> str:
    """Wrap text in bold markup."""
    return f"{_BOLD}{text}{_BOLD}"


def make_italic(text: str) -> str:
    """Wrap text in italic markup."""
    return f"{_ITALIC}{text}{_ITALIC}"


def strip_markup(text: str) -> str:
    """Remove bold/italic markup, keeping the wrapped text."""
    text = _BOLD_PATTERN.sub(r"\1", text)
    return _ITALIC_PATTERN.sub(r"\1", text)


class ChatMessage:
    """Mutable builder for a formatted, possibly multi-line message.

    Args:
        text: Optional initial text (appended without a line break).
    """

    def __init__(self, text: Optional[str] = None):
        self._parts: List[str] = []
        if text:
            self.append(text)

    def append(self, text: str) -> "ChatMessage":
        self._parts.append(text)
        return self

    def append_bold(self, text: str) -> "ChatMessage":
        return self.append(make_bold(text))

    def append_italic(self, text: str) -> "ChatMessage":
        return self.append(make_italic(text))

    def new_line(self) -> "ChatMessage":
        return self.append("\n")

    def append_line(self, text: str) -> "ChatMessage":
        """Append text followed by a line break."""
        return self.append(text).new_line()

    def add_lines(self, lines: Iterable[str]) -> "ChatMessage":
        """Append every line, each terminated by a line break."""
        for line in lines:
            self.append_line(line)
        return self

    @property
    def text(self) -> str:
        """Rendered text including markup."""
        return "".join(self._parts)

    @property
    def plain_text(self) -> str:
        """Rendered text with markup removed."""
        return strip_markup(self.text)

    @property
    def lines(self) -> List[str]:
        """Rendered text split into lines (trailing break dropped)."""
        return self.text.splitlines()

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"ChatMessage({self.text!r})"

    def __bool__(self) -> bool:
        return bool(self._parts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ChatMessage):
            return self.text == other.text
        return NotImplemented

    __hash__ = None  # mutable
