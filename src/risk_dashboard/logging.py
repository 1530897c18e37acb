"""Structured logging configuration for the Risk Dashboard."""

import logging
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path

import structlog
from structlog.types import EventDict, Processor

from risk_dashboard.config import get_settings

# Context variable for dashboard session tracking
session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)


def get_session_id() -> str | None:
    """Get the current session ID from context."""
    return session_id_var.get()


def set_session_id(session_id: str) -> None:
    """Set the session ID in context."""
    session_id_var.set(session_id)


def generate_session_id(prefix: str = "session") -> str:
    """Generate a new unique session ID."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def add_context_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add session_id to log events."""
    session_id = get_session_id()
    if session_id:
        event_dict["session_id"] = session_id
    return event_dict


def setup_logging(
    level: str | None = None,
    log_format: str | None = None,
    log_file: str | None = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        log_format: Output format ('json' or 'console'). Defaults to config value.
        log_file: Path to log file. Defaults to config value.
    """
    settings = get_settings()

    level = level or settings.logging.level
    log_format = log_format or settings.logging.format
    log_file = log_file or settings.logging.log_file

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_context_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # Logs go to stderr so CLI output on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    handlers: list[logging.Handler] = [console_handler]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # Suppress noisy loggers
    logging.getLogger("streamlit").setLevel(logging.WARNING)
    logging.getLogger("openpyxl").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
