"""Backend transport: authenticated JSON-over-HTTP client.

Public API:
    - ApiClient: httpx-based client with bearer auth
    - ApiError: transport/HTTP error carrying status code and server message
    - extract_error_message: pick the human-readable message out of an error body
    - response_body: decode a JSON body, tolerating empty responses
"""

from tcg_console.lib.transport.client import (
    GENERIC_ERROR_MESSAGE,
    ApiClient,
    ApiError,
    error_from_response,
    extract_error_message,
    response_body,
)

__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "ApiClient",
    "ApiError",
    "error_from_response",
    "extract_error_message",
    "response_body",
]
