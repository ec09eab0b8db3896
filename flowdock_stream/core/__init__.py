"""Configuration and logging setup for flowdock-stream."""

from flowdock_stream.core.config import Settings
from flowdock_stream.core.logging_config import (
    configure_logging,
    is_logging_configured,
    reset_logging_config,
)

__all__ = [
    "Settings",
    "configure_logging",
    "is_logging_configured",
    "reset_logging_config",
]
