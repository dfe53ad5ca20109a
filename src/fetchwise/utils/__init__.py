r"""Utility functions implementing the request pipeline.

This package provides helpers for normalizing request headers and
bodies, building request descriptors, sending them through httpx,
validating responses, and extracting their body.
"""

from __future__ import annotations

__all__ = [
    "Blob",
    "BuiltRequest",
    "ResponseEnvelope",
    "build_request",
    "extract_error_message_from_response_body",
    "extract_response_data",
    "invoke_transport",
    "invoke_transport_async",
    "normalize_body",
    "normalize_headers",
    "resolve_url",
    "validate_response",
]

from fetchwise.utils.normalize import normalize_body, normalize_headers
from fetchwise.utils.request import BuiltRequest, build_request, resolve_url
from fetchwise.utils.response import (
    Blob,
    ResponseEnvelope,
    extract_error_message_from_response_body,
    extract_response_data,
    validate_response,
)
from fetchwise.utils.transport import invoke_transport, invoke_transport_async
