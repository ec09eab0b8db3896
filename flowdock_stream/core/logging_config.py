"""
Logging Configuration

Library modules only create loggers with ``structlog.get_logger(__name__)``;
nothing is configured on import. Applications (and tests) that want readable
output call ``configure_logging()`` once at startup.

Usage:
    from flowdock_stream.core.logging_config import configure_logging

    configure_logging()  # level from FLOWDOCK_LOG_LEVEL, default INFO
"""

import logging
from typing import Optional

import structlog

from flowdock_stream.core.config import Settings

# Flag to ensure configuration is only applied once
_logging_configured = False

# Chatty transport loggers, kept at WARNING regardless of the root level
NOISY_LOGGERS = ["httpx", "httpcore", "asyncio", "anyio"]

_SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """
    Configure stdlib logging and structlog for console output.

    Args:
        level: Level name (DEBUG, INFO, ...). Defaults to FLOWDOCK_LOG_LEVEL.
        force: If True, reconfigure logging even if already configured.
               Useful for testing. Default: False
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level_name = (level or Settings.from_environment().log_level).upper()
    log_level = getattr(logging, level_name, None)
    if not isinstance(log_level, int):
        logging.warning(
            f"Invalid log level '{level_name}'. "
            f"Valid levels: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
        log_level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(),
            ],
        )
    )

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _logging_configured = True
    structlog.get_logger(__name__).debug("Logging configured", level=level_name)


def reset_logging_config() -> None:
    """
    Reset the logging configuration flag.

    This is primarily useful for testing, allowing configure_logging()
    to be called multiple times.
    """
    global _logging_configured
    _logging_configured = False


def is_logging_configured() -> bool:
    """Check if configure_logging() has been called."""
    return _logging_configured
