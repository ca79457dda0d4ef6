"""
FeedRewrite Logging Configuration
=================================

Structured logging setup for the plugins. The host owns the process, so
nothing here is configured on import: ``configure_application_logging`` is
called by the developer CLI, and inside a host the ``feedrewrite`` logger
simply propagates to whatever the host has set up.

Every plugin logs through ``get_logger_for_component``, which stamps records
with the component name and, when known, the feed and entry being rewritten.
Errors logged with ``extra=error.to_dict()`` are grouped under ``error``.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union


# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

CONTEXT_FIELDS = ("component", "feed_id", "entry_url")

ERROR_FIELDS = ("error_type", "error_code", "error_message", "user_message", "recoverable", "context")

QUIET_LIBRARIES = ("urllib3", "requests", "openai", "httpx", "PIL")


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_RECORD_FIELDS}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: plugin context at top level, error details grouped."""

    def format(self, record: logging.LogRecord) -> str:
        extras = _record_extras(record)

        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for key in CONTEXT_FIELDS:
            if key in extras:
                log_data[key] = extras.pop(key)

        if "error_code" in extras:
            log_data["error"] = {key: extras.pop(key) for key in ERROR_FIELDS if key in extras}

        if extras:
            log_data["extra"] = extras

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Compact colored lines for the developer CLI."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        source = getattr(record, "component", record.name)
        feed_id = getattr(record, "feed_id", None)
        if feed_id is not None:
            source = f"{source}[feed {feed_id}]"

        line = f"{color}[{timestamp}] {record.levelname:8}{self.RESET} {source} - {record.getMessage()}"

        error_code = getattr(record, "error_code", None)
        if error_code:
            line += f" ({error_code})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logger(
    name: str = "feedrewrite",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """Attach handlers to a logger, replacing any it already has.

    Console output goes to stderr so command output on stdout stays clean.
    File output is always JSON and rotates at ``max_file_size``.

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(StructuredFormatter() if structured else ColoredConsoleFormatter())
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adds fixed plugin context to every record.

    Values passed through ``extra`` at the call site win over the bound
    context, so an error's own fields are never overwritten.
    """

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context: Any) -> "LoggerAdapter":
        """New adapter on the same logger with additional context; None values are left out."""
        bound = {k: v for k, v in context.items() if v is not None}
        return LoggerAdapter(self.logger, {**self.extra, **bound})


def get_logger_for_component(
    component_name: str,
    feed_id: Optional[Union[int, str]] = None,
    entry_url: Optional[str] = None,
) -> LoggerAdapter:
    """Get the ``feedrewrite.<component>`` logger with its context bound.

    Args:
        component_name: Plugin or module name (e.g. 'replacer', 'inline_images')
        feed_id: Feed being processed
        entry_url: Link of the entry being processed
    """
    context: Dict[str, Any] = {"component": component_name}
    if feed_id is not None:
        context["feed_id"] = feed_id
    if entry_url:
        context["entry_url"] = entry_url

    return LoggerAdapter(logging.getLogger(f"feedrewrite.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    structured_logging: bool = False,
) -> None:
    """Configure the ``feedrewrite`` logger tree for standalone use."""
    setup_logger(
        name="feedrewrite",
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
    )

    for library in QUIET_LIBRARIES:
        logging.getLogger(library).setLevel(logging.WARNING)


class PerformanceLogger:
    """Times a block and logs how long it took.

    Success is logged at DEBUG, failure at ERROR; exceptions propagate.
    """

    def __init__(self, logger: Union[logging.Logger, logging.LoggerAdapter], operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self.started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=dict(self.context))
        return self

    @property
    def elapsed(self) -> float:
        return 0.0 if self.started is None else time.perf_counter() - self.started

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        duration = self.elapsed
        context = {**self.context, "duration_seconds": round(duration, 3), "success": exc_type is None}

        if exc_type:
            self.logger.error(f"Failed {self.operation} in {duration:.3f}s: {exc_val}", extra=context)
        else:
            self.logger.debug(f"Completed {self.operation} in {duration:.3f}s", extra=context)
