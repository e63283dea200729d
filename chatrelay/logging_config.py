"""Logging for the relay: console output, rotating files, masking.

Every chatrelay event is written to the console, to the combined
``chatrelay.log`` and to the file of its subsystem (``dispatch.log``,
``commands.log``, ...). Loggers are stdlib loggers named
``chatrelay.<subsystem>`` wrapped by structlog, so propagation does the
fan-out.

Message recipients are personal data: phone numbers and chat addresses
are masked before any renderer sees them.
"""

import logging
import logging.handlers
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

SUBSYSTEMS = ("dispatch", "commands", "transport", "config")

LOGGER_PREFIX = "chatrelay"


# --- Masking ---

_KEY_PATTERNS = (
    re.compile(r"sk-[a-zA-Z0-9_-]{20,}"),
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
)

# E.164, 7-15 digits
_PHONE_PATTERN = re.compile(r"\+\d{7,15}")

# JIDs and e-mail addresses
_ADDRESS_PATTERN = re.compile(r"\b([A-Za-z0-9])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")


def mask_contact_data(text: str) -> str:
    """Mask keys, phone numbers and chat addresses inside ``text``.

    >>> mask_contact_data("sms to +491701234567 from alice@example.com")
    'sms to ...4567 from a***@example.com'
    """
    for pattern in _KEY_PATTERNS:
        text = pattern.sub("***REDACTED***", text)
    text = _PHONE_PATTERN.sub(lambda m: "..." + m.group(0)[-4:], text)
    return _ADDRESS_PATTERN.sub(lambda m: f"{m.group(1)}***@{m.group(2)}", text)


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        return mask_contact_data(value)
    if isinstance(value, (list, tuple)):
        return type(value)(_mask(v) for v in value)
    if isinstance(value, dict):
        return {k: _mask(v) for k, v in value.items()}
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor applying mask_contact_data to every value.

    Phone numbers keep their last 4 digits ("...1234"), chat addresses
    their first character and domain ("a***@example.com"). Lists,
    tuples and dicts are masked recursively.
    """
    return {key: _mask(value) for key, value in event_dict.items()}


# --- Settings ---

@dataclass(frozen=True)
class LogSettings:
    """Resolved logging settings; the defaults apply before config loads.

    Without a log_dir only the console handler is installed.
    """
    log_dir: Optional[Path] = None
    level: int = logging.INFO
    subsystem_levels: Dict[str, int] = field(default_factory=dict)
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    json_files: bool = False

    @classmethod
    def from_config(cls, config) -> "LogSettings":
        level = _parse_level(config.logging_level, logging.INFO)
        return cls(
            log_dir=config.log_dir,
            level=level,
            subsystem_levels={
                name: _parse_level(value, level)
                for name, value in config.logging_subsystem_levels.items()
            },
            max_bytes=int(config.logging_max_file_size_mb) * 1024 * 1024,
            backup_count=int(config.logging_backup_count),
            json_files=getattr(config, "logging_format", "console") == "json",
        )

    def level_for(self, subsystem: str) -> int:
        return self.subsystem_levels.get(subsystem, self.level)


def _parse_level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


# --- Handlers ---

# Applied to records from plain stdlib loggers before rendering.
_FOREIGN_PRE_CHAIN = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    sanitize_secrets,
]


def _formatter(renderer: Any) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _file_formatter(json_files: bool) -> logging.Formatter:
    if json_files:
        return _formatter(structlog.processors.JSONRenderer())
    return _formatter(structlog.dev.ConsoleRenderer(colors=False))


def _rotating_file(path: Path, level: int, settings: LogSettings,
                   formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _prepare_log_dir(log_dir: Path) -> bool:
    """Create the log directory; False means console-only logging."""
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
        return False
    return True


def _reset_logger(name: str, level: int) -> logging.Logger:
    log = logging.getLogger(name)
    if name:
        for handler in log.handlers:
            handler.close()
    log.handlers.clear()
    log.setLevel(level)
    log.propagate = True
    return log


def _configure_stdlib(settings: LogSettings, files: bool) -> None:
    root = _reset_logger("", logging.DEBUG)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(settings.level)
    console.setFormatter(_formatter(structlog.dev.ConsoleRenderer()))
    root.addHandler(console)

    formatter = _file_formatter(settings.json_files)
    combined = _reset_logger(LOGGER_PREFIX, logging.DEBUG)
    if files:
        combined.addHandler(_rotating_file(
            settings.log_dir / f"{LOGGER_PREFIX}.log", settings.level, settings, formatter,
        ))

    for subsystem in SUBSYSTEMS:
        level = settings.level_for(subsystem)
        sub_logger = _reset_logger(f"{LOGGER_PREFIX}.{subsystem}", level)
        if files:
            sub_logger.addHandler(_rotating_file(
                settings.log_dir / f"{subsystem}.log", level, settings, formatter,
            ))


def _event_processors() -> List[Any]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        sanitize_secrets,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def setup_logging(config=None) -> LogSettings:
    """Install console and file logging and configure structlog.

    Call once without arguments at startup so early events reach the
    console, then again with the loaded Config to add the log files.
    Only the second call lets structlog cache bound loggers.

    Returns:
        The settings that were applied.
    """
    settings = LogSettings() if config is None else LogSettings.from_config(config)
    files = settings.log_dir is not None and _prepare_log_dir(settings.log_dir)
    _configure_stdlib(settings, files=files)
    structlog.configure(
        processors=_event_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=config is not None,
    )
    return settings


def reset_logging() -> None:
    """Close the relay's log files and restore structlog defaults."""
    for name in (LOGGER_PREFIX, *(f"{LOGGER_PREFIX}.{s}" for s in SUBSYSTEMS), ""):
        _reset_logger(name, logging.NOTSET if name else logging.WARNING)
    structlog.reset_defaults()
