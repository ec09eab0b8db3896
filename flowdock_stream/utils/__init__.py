"""Utility helpers for flowdock-stream."""

from flowdock_stream.utils.http_helpers import describe_http_error, parse_error_detail

__all__ = ["describe_http_error", "parse_error_detail"]
