"""HTTP error handling utilities."""

from __future__ import annotations

import httpx


def parse_error_detail(response: httpx.Response) -> str | None:
    """Extract error detail from an HTTP response.

    Flowdock error bodies look like ``{"message": "..."}``; some proxies
    answer with ``{"detail": "..."}`` or plain text instead.

    Args:
        response: The HTTP response object (body already read)

    Returns:
        The error detail string if present, None otherwise
    """
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None
    if isinstance(data, dict):
        detail = data.get("message") or data.get("detail")
        return str(detail) if detail else None
    return None


def describe_http_error(response: httpx.Response, *, context: str | None = None) -> str:
    """Format a non-2xx response as a one-line error message.

    Args:
        response: The HTTP response object (body already read)
        context: Optional context prefix (e.g., "push to flow")

    Returns:
        Message such as ``"push to flow: HTTP 404 (Flow not found)"``
    """
    msg = f"HTTP {response.status_code}"
    if detail := parse_error_detail(response):
        msg = f"{msg} ({detail})"
    return f"{context}: {msg}" if context else msg
