"""
Constants for API Client Module
================================

Endpoints, credentials and buffer sizes shared by the REST fetchers,
the push helper and the stream session.
"""

# Default configuration
DEFAULT_API_URL = "https://api.flowdock.com"
DEFAULT_STREAM_URL = "https://stream.flowdock.com"
DEFAULT_TIMEOUT = 30.0

# Flowdock rejects basic auth with an empty password; any value works.
PLACEHOLDER_PASSWORD = "BATMAN"

# Raw frames buffered between the stream reader and the event consumer
DEFAULT_STREAM_BUFFER_SIZE = 1024

# Longest stream line accepted before the session gives up
MAX_FRAME_SIZE = 8 * 1024 * 1024

# REST endpoints
USERS_PATH = "/users"
FLOWS_PATH = "/flows"
ORGANIZATIONS_PATH = "/organizations"
PUSH_CHAT_PATH = "/v1/messages/chat/{flow_key}"

# Streaming endpoint
STREAM_FLOWS_PATH = "/flows?filter="
