"""
API Client Module for flowdock-stream
======================================

HTTP client for the Flowdock REST and streaming APIs.

Components:
- client: FlowdockClient facade (bootstrap, lookups, streaming, push)
- models: User, Flow and Organization records
- resources: bootstrap fetchers for the REST resources
- push: Push API helpers for posting messages with a flow token
- constants: Endpoints, timeouts and buffer sizes
"""

from flowdock_stream.api.client import FlowdockClient
from flowdock_stream.api.constants import (
    DEFAULT_API_URL,
    DEFAULT_STREAM_BUFFER_SIZE,
    DEFAULT_STREAM_URL,
    DEFAULT_TIMEOUT,
)
from flowdock_stream.api.models import Flow, Organization, User
from flowdock_stream.api.push import build_push_form, push_message, push_reply
from flowdock_stream.api.resources import fetch_flows, fetch_organizations, fetch_users

__all__ = [
    # Client
    "FlowdockClient",
    # Models
    "Flow",
    "Organization",
    "User",
    # Fetchers
    "fetch_flows",
    "fetch_organizations",
    "fetch_users",
    # Push
    "build_push_form",
    "push_message",
    "push_reply",
    # Constants
    "DEFAULT_API_URL",
    "DEFAULT_STREAM_BUFFER_SIZE",
    "DEFAULT_STREAM_URL",
    "DEFAULT_TIMEOUT",
]
