"""Configuration and settings for flowdock-stream."""

import os
from dataclasses import dataclass

import dotenv

from flowdock_stream.api.constants import (
    DEFAULT_API_URL,
    DEFAULT_STREAM_BUFFER_SIZE,
    DEFAULT_STREAM_URL,
    DEFAULT_TIMEOUT,
)

dotenv.load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        msg = f"Invalid value for {name}: {raw!r} (expected a number)"
        raise ValueError(msg) from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        msg = f"Invalid value for {name}: {raw!r} (expected an integer)"
        raise ValueError(msg) from None
    if value <= 0:
        msg = f"Invalid value for {name}: {raw!r} (must be positive)"
        raise ValueError(msg)
    return value


@dataclass
class Settings:
    """Environment-derived settings for the Flowdock client.

    Attributes:
        api_key: Personal API token used for REST and streaming basic auth
        api_url: Base URL of the REST API
        stream_url: Base URL of the streaming API
        timeout: Timeout in seconds for REST calls and stream connects
        stream_buffer_size: Raw frames buffered between reader and consumer
        log_level: Level name used by configure_logging()
    """

    api_key: str | None
    api_url: str = DEFAULT_API_URL
    stream_url: str = DEFAULT_STREAM_URL
    timeout: float = DEFAULT_TIMEOUT
    stream_buffer_size: int = DEFAULT_STREAM_BUFFER_SIZE
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Settings":
        """Create settings from FLOWDOCK_* environment variables.

        Returns:
            Settings instance with detected configuration

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(
            api_key=os.environ.get("FLOWDOCK_API_KEY") or None,
            api_url=os.environ.get("FLOWDOCK_API_URL", DEFAULT_API_URL).rstrip("/"),
            stream_url=os.environ.get("FLOWDOCK_STREAM_URL", DEFAULT_STREAM_URL).rstrip("/"),
            timeout=_env_float("FLOWDOCK_TIMEOUT", DEFAULT_TIMEOUT),
            stream_buffer_size=_env_int("FLOWDOCK_STREAM_BUFFER", DEFAULT_STREAM_BUFFER_SIZE),
            log_level=os.environ.get("FLOWDOCK_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def has_api_key(self) -> bool:
        """Check if an API key is configured."""
        return self.api_key is not None
