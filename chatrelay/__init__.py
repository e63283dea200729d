"""chatrelay - command dispatch core for a chat-to-phone relay."""

__version__ = "1.0.0"
