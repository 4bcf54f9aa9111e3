"""Logging setup for Signalboard commands.

Every CLI invocation gets a short request id and the name of the command
being run. Both are stored in context variables and stamped onto each log
record, so lines written by concurrent classification calls of one import
can be grouped together.

Output:
    - Console (stderr): text or JSON, INFO by default
    - File (LOG_DIR/signalboard.log): always DEBUG, rotated daily or by size

Usage:
    >>> from observability.logging import setup_logging, set_request_context
    >>> setup_logging(config)
    >>> set_request_context("9f2c41ab", command="digest")
    >>> logger.info("Digest saved | id=%d", 4)
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILENAME = "signalboard.log"

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")
command_var: contextvars.ContextVar[str] = contextvars.ContextVar("command", default="-")

# Attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "request_id", "command",
}

_NOISY_LOGGERS = ("aiohttp", "openai", "httpx", "httpcore", "asyncio")


def set_request_context(request_id: str, command: str = "-") -> None:
    """Attach a request id and command name to subsequent log records."""
    request_id_var.set(request_id)
    command_var.set(command)


def clear_context() -> None:
    request_id_var.set("-")
    command_var.set("-")


class ContextFilter(logging.Filter):
    """Copies the request context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.command = command_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: timestamp, level, logger, message, request_id, command, plus
    source for warnings and above, exception when present, and any
    extra= fields (stringified if not JSON serializable).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "command": getattr(record, "command", "-"),
        }

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value

        return json.dumps(entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """TIMESTAMP [LEVEL] [request_id command] logger: message"""

    def __init__(self, include_date: bool = False):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] [%(request_id)s %(command)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S",
        )


def _file_handler(config: Any) -> logging.Handler:
    """Rotating handler for LOG_DIR/signalboard.log.

    LOG_MAX_BYTES > 0 rotates by size, otherwise at midnight.

    Raises:
        OSError: If the log directory cannot be created or written
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file: Path = config.log_dir / LOG_FILENAME

    if config.log_max_bytes > 0:
        return RotatingFileHandler(
            log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
    return TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )


def setup_logging(config: Any, verbose: bool = False) -> bool:
    """Install console and file handlers on the root logger.

    Console output goes to stderr so JSON printed by commands on stdout
    stays machine readable. If the log directory is not writable, logging
    continues on the console only.

    Args:
        config: Config with log_level, log_format, log_dir and rotation settings
        verbose: Force DEBUG on the console

    Returns:
        True if file logging is active
    """
    use_json = config.log_format == "json"
    context_filter = ContextFilter()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO))
    console.setFormatter(JsonFormatter() if use_json else TextFormatter())
    console.addFilter(context_filter)
    root.addHandler(console)

    file_logging = True
    try:
        file_handler = _file_handler(config)
    except OSError as e:
        print(
            f"Warning: Cannot write to log directory '{config.log_dir}': {e}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
        file_logging = False
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter() if use_json else TextFormatter(include_date=True))
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return file_logging
