"""Authenticated GET helper for the Flowdock REST API."""

import httpx
import structlog

from flowdock_stream.api.constants import PLACEHOLDER_PASSWORD
from flowdock_stream.errors import TransportError

logger = structlog.get_logger(__name__)


def basic_auth(api_key: str) -> httpx.BasicAuth:
    """Basic auth credentials for an API key (placeholder password)."""
    return httpx.BasicAuth(api_key, PLACEHOLDER_PASSWORD)


async def flowdock_get(client: httpx.AsyncClient, api_key: str, url: str) -> bytes:
    """Perform an authenticated GET and return the raw response body.

    The status code is not inspected: an error body is returned as-is and
    surfaces as a decode error in the caller.

    Args:
        client: Shared async HTTP client
        api_key: Flowdock API token, sent as the basic auth username
        url: Absolute URL to fetch

    Returns:
        The full response body

    Raises:
        TransportError: If the request or body read fails
    """
    try:
        response = await client.get(url, auth=basic_auth(api_key))
    except httpx.HTTPError as e:
        raise TransportError(f"GET {url} failed: {e}") from e

    if response.is_error:
        logger.debug("Flowdock GET returned error status", url=url, status=response.status_code)
    return response.content
