r"""Normalization of loosely typed request headers and bodies."""

from __future__ import annotations

__all__ = ["normalize_body", "normalize_headers"]

import json
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from fetchwise.core.config import DEFAULT_CONTENT_TYPE
from fetchwise.exceptions import ErrorCode, HttpRequestError


def normalize_headers(headers: Any) -> httpx.Headers:
    """Convert the request headers to an ``httpx.Headers`` collection.

    An ``httpx.Headers`` is returned unchanged, a mapping or a sequence
    of ``(name, value)`` pairs is converted, and None defaults to
    ``{"Content-Type": "application/json"}``. The resulting collection
    must contain a Content-Type header.

    Args:
        headers: The request headers.

    Returns:
        The header collection.

    Raises:
        HttpRequestError: If the headers cannot be converted
            (``INVALID_REQUEST_HEADERS``) or do not contain a
            Content-Type header (``MISSING_CONTENT_TYPE_HEADER``).

    Example:
        ```pycon
        >>> from fetchwise.utils.normalize import normalize_headers
        >>> normalize_headers(None)["Content-Type"]
        'application/json'
        >>> headers = normalize_headers({"Content-Type": "text/plain", "X-Id": "1"})
        >>> headers["content-type"], headers["x-id"]
        ('text/plain', '1')

        ```
    """
    if headers is None:
        normalized = httpx.Headers({"Content-Type": DEFAULT_CONTENT_TYPE})
    elif isinstance(headers, httpx.Headers):
        normalized = headers
    elif isinstance(headers, (str, bytes)) or not isinstance(headers, (Mapping, Sequence)):
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_HEADERS,
            message=f"The request headers must be a mapping or a sequence of pairs, got {type(headers).__name__}",
        )
    else:
        try:
            normalized = httpx.Headers(headers)
        except (TypeError, ValueError) as exc:
            raise HttpRequestError(
                code=ErrorCode.INVALID_REQUEST_HEADERS,
                message=f"The request headers are invalid: {exc}",
                cause=exc,
            ) from exc

    if "Content-Type" not in normalized:
        raise HttpRequestError(
            code=ErrorCode.MISSING_CONTENT_TYPE_HEADER,
            message="The request headers must include the Content-Type header",
        )
    return normalized


def normalize_body(body: Any, method: str) -> str | bytes | None:
    """Convert the request body to the content sent on the wire.

    Mappings, lists and tuples are serialized to JSON, non-empty
    strings and bytes are sent as they are, and every other value
    (including the body of a GET request) is dropped.

    Args:
        body: The request body.
        method: The HTTP method of the request.

    Returns:
        The request content, or None if the request has no body.

    Raises:
        HttpRequestError: If the body cannot be serialized to JSON.

    Example:
        ```pycon
        >>> from fetchwise.utils.normalize import normalize_body
        >>> normalize_body({"key": "value"}, method="POST")
        '{"key": "value"}'
        >>> normalize_body({"key": "value"}, method="GET") is None
        True
        >>> normalize_body("", method="POST") is None
        True

        ```
    """
    if method == "GET":
        return None
    if isinstance(body, (Mapping, list, tuple)):
        try:
            return json.dumps(body)
        except (TypeError, ValueError) as exc:
            raise HttpRequestError(
                code=ErrorCode.INVALID_REQUEST_OPTIONS,
                message=f"The request body cannot be serialized to JSON: {exc}",
                method=method,
                cause=exc,
            ) from exc
    if isinstance(body, (str, bytes)) and body:
        return body
    return None
