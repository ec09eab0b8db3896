"""Push API helpers for posting chat messages with a per-flow token.

The push endpoint needs no user credentials: the flow's push key in the URL
is the credential, and the message appears under any pseudonym the caller
chooses. Useful for bots.
"""

from typing import Dict, Optional

import httpx
import structlog

from flowdock_stream.api.constants import DEFAULT_API_URL, DEFAULT_TIMEOUT, PUSH_CHAT_PATH
from flowdock_stream.errors import PushError
from flowdock_stream.utils.http_helpers import describe_http_error

logger = structlog.get_logger(__name__)


def build_push_form(message: str, sender: str, thread_id: int = 0) -> Dict[str, str]:
    """Build the form body for a push request.

    Args:
        message: Chat message content
        sender: Display name to post as (``external_user_name``)
        thread_id: ID of the thread to reply to; 0 starts a new thread

    Returns:
        Form fields; ``message_id`` is only present for replies
    """
    form = {"content": message, "external_user_name": sender}
    if thread_id != 0:
        form["message_id"] = str(thread_id)
    return form


def push_url(flow_key: str, api_url: str = DEFAULT_API_URL) -> str:
    """Push endpoint URL for a flow's push key."""
    return api_url.rstrip("/") + PUSH_CHAT_PATH.format(flow_key=flow_key)


async def _push(
    client: httpx.AsyncClient,
    flow_key: str,
    form: Dict[str, str],
    api_url: str,
) -> None:
    try:
        response = await client.post(push_url(flow_key, api_url), data=form)
    except httpx.HTTPError as e:
        raise PushError(f"Push request failed: {e}") from e

    if not response.is_success:
        raise PushError(
            describe_http_error(response, context="Push rejected"),
            status_code=response.status_code,
        )
    logger.debug("Pushed message", thread=form.get("message_id"), status=response.status_code)


async def push_to_flow(
    flow_key: str,
    message: str,
    sender: str,
    thread_id: int = 0,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    api_url: str = DEFAULT_API_URL,
) -> None:
    """
    POST a message to the push endpoint.

    Args:
        flow_key: The flow's push API token
        message: Chat message content
        sender: Display name to post as
        thread_id: Thread to reply to; 0 starts a new thread
        http_client: Client to reuse; a short-lived one is created if omitted
        api_url: REST API base URL

    Raises:
        PushError: If the request fails or the server answers non-2xx
    """
    form = build_push_form(message, sender, thread_id)
    if http_client is not None:
        await _push(http_client, flow_key, form, api_url)
        return

    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
        await _push(client, flow_key, form, api_url)


async def push_message(
    flow_key: str,
    message: str,
    sender: str,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    api_url: str = DEFAULT_API_URL,
) -> None:
    """Start a new thread in a flow using its push key."""
    await push_to_flow(flow_key, message, sender, 0, http_client=http_client, api_url=api_url)


async def push_reply(
    flow_key: str,
    message: str,
    sender: str,
    thread_id: int,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    api_url: str = DEFAULT_API_URL,
) -> None:
    """Reply to an existing thread in a flow using its push key."""
    await push_to_flow(
        flow_key, message, sender, thread_id, http_client=http_client, api_url=api_url
    )
