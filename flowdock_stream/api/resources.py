"""
Bootstrap Fetchers
==================

Fetch and decode the users, flows and organizations visible to an API key.
The client runs all three concurrently at startup.
"""

import json
from typing import Dict, List, Type, TypeVar

import httpx
from pydantic import ValidationError

from flowdock_stream.api.constants import (
    DEFAULT_API_URL,
    FLOWS_PATH,
    ORGANIZATIONS_PATH,
    USERS_PATH,
)
from flowdock_stream.api.http import flowdock_get
from flowdock_stream.api.models import Flow, FlowdockModel, Organization, User
from flowdock_stream.errors import BootstrapError, TransportError

ModelT = TypeVar("ModelT", bound=FlowdockModel)


def _decode_list(source: str, body: bytes, model: Type[ModelT]) -> List[ModelT]:
    """Decode a JSON array body into a list of models."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BootstrapError(source, f"invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise BootstrapError(source, f"expected a JSON array, got {type(data).__name__}")

    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as e:
        raise BootstrapError(source, str(e)) from e


async def _fetch(client: httpx.AsyncClient, api_key: str, source: str, url: str) -> bytes:
    try:
        return await flowdock_get(client, api_key, url)
    except TransportError as e:
        raise BootstrapError(source, str(e)) from e


async def fetch_users(
    client: httpx.AsyncClient,
    api_key: str,
    api_url: str = DEFAULT_API_URL,
) -> Dict[str, User]:
    """
    Fetch users from GET /users.

    Returns:
        Mapping of the decimal user ID string to the User

    Raises:
        BootstrapError: If the request or decoding fails
    """
    body = await _fetch(client, api_key, "users", api_url + USERS_PATH)
    return {str(user.id): user for user in _decode_list("users", body, User)}


async def fetch_flows(
    client: httpx.AsyncClient,
    api_key: str,
    api_url: str = DEFAULT_API_URL,
) -> List[Flow]:
    """
    Fetch the flows the user has joined from GET /flows.

    Raises:
        BootstrapError: If the request or decoding fails
    """
    body = await _fetch(client, api_key, "flows", api_url + FLOWS_PATH)
    return _decode_list("flows", body, Flow)


async def fetch_organizations(
    client: httpx.AsyncClient,
    api_key: str,
    api_url: str = DEFAULT_API_URL,
) -> List[Organization]:
    """
    Fetch organizations from GET /organizations.

    Raises:
        BootstrapError: If the request or decoding fails
    """
    body = await _fetch(client, api_key, "organizations", api_url + ORGANIZATIONS_PATH)
    return _decode_list("organizations", body, Organization)
