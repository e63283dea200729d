"""Localized user-facing strings.

Handlers look strings up by identifier and pass positional arguments,
e.g. ``strings.get("chat_unknown_command", "sms")``. Templates use
``str.format`` placeholders (``{0}``, ``{1}``).

Built-in English defaults can be overridden by a YAML file, either
flat (``id: template``) or split per locale::

    strings:
      en:
        chat_specify_details: "Which one did you mean?"
      de:
        chat_specify_details: "Bitte genauer angeben:"
"""

from pathlib import Path
from typing import Dict, Mapping, Optional

import structlog
import yaml

from .exceptions import ResourceNotFoundError

logger = structlog.get_logger("chatrelay.config")

DEFAULT_STRINGS: Dict[str, str] = {
    "chat_specify_details": "Please specify more details, there are several matches:",
    "chat_unknown_command": "Unknown command: {0}. Use \"help\" to list the available commands.",
    "chat_error": "Error while executing {0}: {1}",
    "chat_help_header": "Available commands:",
}


class StringResources:
    """Lookup table for user-facing strings.

    Args:
        overrides: Templates replacing or extending DEFAULT_STRINGS.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self._strings: Dict[str, str] = dict(DEFAULT_STRINGS)
        if overrides:
            self._strings.update({str(k): str(v) for k, v in overrides.items()})

    @classmethod
    def from_file(cls, path: Path, locale: str = "en") -> "StringResources":
        """Load overrides from a YAML strings file.

        A missing file yields the built-in defaults.
        """
        if not path.exists():
            logger.warning("strings_file_not_found", path=str(path))
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        section = data.get("strings", data) if isinstance(data, dict) else {}
        if isinstance(section.get(locale), dict):
            section = section[locale]
        overrides = {k: v for k, v in section.items() if isinstance(v, str)}
        logger.debug("strings_loaded", path=str(path), locale=locale, count=len(overrides))
        return cls(overrides)

    @classmethod
    def from_config(cls, config) -> "StringResources":
        """Build resources from Config.strings_file / Config.locale."""
        if config.strings_file is None:
            return cls()
        return cls.from_file(config.strings_file, config.locale)

    def get(self, string_id: str, *args) -> str:
        """Return the template for string_id formatted with args."""
        try:
            template = self._strings[string_id]
        except KeyError:
            raise ResourceNotFoundError(
                f"Unknown string id: {string_id}", string_id=string_id
            ) from None
        if not args:
            return template
        try:
            return template.format(*args)
        except (IndexError, KeyError) as e:
            raise ResourceNotFoundError(
                f"Cannot format string {string_id}",
                string_id=string_id,
                error=str(e),
            ) from e

    def __contains__(self, string_id: object) -> bool:
        return string_id in self._strings
