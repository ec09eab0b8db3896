"""Pytest configuration and shared fixtures for flowdock-stream tests."""

import base64
import json
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

API_URL = "http://api.test"
STREAM_URL = "http://stream.test"
API_KEY = "test-key"


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def clean_flowdock_env(monkeypatch):
    """Keep FLOWDOCK_* variables from the developer's shell out of tests."""
    for name in (
        "FLOWDOCK_API_KEY",
        "FLOWDOCK_API_URL",
        "FLOWDOCK_STREAM_URL",
        "FLOWDOCK_TIMEOUT",
        "FLOWDOCK_STREAM_BUFFER",
        "FLOWDOCK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def expected_auth_header() -> str:
    """Authorization header for API_KEY with the placeholder password."""
    token = base64.b64encode(f"{API_KEY}:BATMAN".encode()).decode()
    return f"Basic {token}"


# ============================================================================
# Resource Payloads
# ============================================================================


@pytest.fixture
def users_payload() -> list[dict[str, Any]]:
    """Two users as returned by GET /users."""
    return [
        {
            "id": 7,
            "name": "Alice Example",
            "nick": "alice",
            "avatar": "https://avatars.test/alice.png",
            "status": "coding",
            "last_activity": 1700000000,
            "last_ping": 1700000100,
            "email": "alice@example.com",
        },
        {
            "id": 12345,
            "name": "Bob Example",
            "nick": "bob",
            "avatar": None,
            "status": None,
            "last_activity": 1700000200,
            "last_ping": 1700000300,
            "email": "bob@example.com",
        },
    ]


@pytest.fixture
def organizations_payload(users_payload) -> list[dict[str, Any]]:
    """Two organizations as returned by GET /organizations."""
    return [
        {
            "id": 1,
            "parameterized_name": "orga",
            "name": "Org A",
            "url": "https://api.flowdock.com/organizations/orga",
            "users": users_payload,
        },
        {
            "id": 2,
            "parameterized_name": "orgb",
            "name": "Org B",
            "url": "https://api.flowdock.com/organizations/orgb",
            "users": [],
        },
    ]


@pytest.fixture
def flows_payload(organizations_payload) -> list[dict[str, Any]]:
    """Three flows over two organizations as returned by GET /flows."""
    org_a, org_b = organizations_payload

    def flow(flow_id: str, slug: str, org: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": flow_id,
            "url": f"https://api.flowdock.com/flows/{org['parameterized_name']}/{slug}",
            "web_url": f"https://www.flowdock.com/app/{org['parameterized_name']}/{slug}",
            "name": slug.title(),
            "parameterized_name": slug,
            "organization": org,
        }

    return [
        flow("f-1", "flow1", org_a),
        flow("f-2", "flow2", org_a),
        flow("f-3", "flow3", org_b),
    ]


# ============================================================================
# Event Frames
# ============================================================================


@pytest.fixture
def make_frame() -> Callable[..., bytes]:
    """Build one JSON stream frame with a full envelope."""

    def _make(event: str, content: Any = "", **overrides: Any) -> bytes:
        record = {
            "event": event,
            "id": 42,
            "flow": "f-1",
            "content": content,
            "sent": 1000,
            "tags": [],
            "attachments": [],
            "user": "7",
        }
        record.update(overrides)
        return json.dumps(record).encode("utf-8")

    return _make


# ============================================================================
# Fake Flowdock Server
# ============================================================================


@pytest.fixture
def fake_flowdock(users_payload, flows_payload, organizations_payload):
    """Build a MockTransport serving the REST endpoints and a scripted stream.

    Returns a factory accepting optional overrides:
        stream: bytes, or an async iterator of bytes, for the stream body
        routes: mapping of REST path to httpx.Response (overrides defaults)
    The factory returns (transport, requests) where requests records every
    request seen by the fake server.
    """

    def _factory(stream: Any = b"", routes: dict[str, httpx.Response] | None = None):
        requests: list[httpx.Request] = []
        rest = {
            "/users": lambda: httpx.Response(200, json=users_payload),
            "/flows": lambda: httpx.Response(200, json=flows_payload),
            "/organizations": lambda: httpx.Response(200, json=organizations_payload),
        }
        overrides = routes or {}

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.host == "stream.test":
                return httpx.Response(200, content=stream)
            path = request.url.path
            if path in overrides:
                return overrides[path]
            if path in rest:
                return rest[path]()
            return httpx.Response(404, json={"message": "Not found"})

        return httpx.MockTransport(handler), requests

    return _factory


@pytest.fixture
def client_options() -> dict[str, Any]:
    """Keyword arguments pointing a FlowdockClient at the fake server."""
    return {"api_url": API_URL, "stream_url": STREAM_URL, "timeout": 1.0}
