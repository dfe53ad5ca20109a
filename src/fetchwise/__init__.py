r"""fetchwise - Build, send, validate, and retry HTTP requests.

This package builds HTTP requests from loosely typed input, sends them
with the httpx library, validates the response against acceptance rules
(status codes and Content-Type), extracts the response body in the
requested shape, and optionally retries failed requests.

Key Features:
    - Request building with header, body, and URL normalization
    - Status code validation against an explicit set or an inclusive range
    - Strict Content-Type validation, which can be disabled
    - Response data extraction as bytes, blob, form data, JSON, or text
    - Counted (flat delay) and scheduled (list of delays) retry policies
    - Rate limited requests (HTTP 429) are never retried
    - Synchronous and asynchronous APIs
    - Callbacks for retries and redirects

Example:
    ```pycon
    >>> from fetchwise import send_get, send_post
    >>> response = send_get("https://httpbin.org/get", retry_policy=[3, 5])  # doctest: +SKIP
    >>> response = send_post(
    ...     "https://httpbin.org/post",
    ...     {"request_options": {"body": {"key": "value"}}},
    ... )  # doctest: +SKIP
    >>> response.code  # doctest: +SKIP
    200

    ```
"""

from __future__ import annotations

__all__ = [
    "CountedRetryPolicy",
    "ErrorCode",
    "HttpRequestError",
    "Options",
    "RequestOptions",
    "ResponseDataType",
    "ResponseEnvelope",
    "ScheduledRetryPolicy",
    "StatusCodeRange",
    "__version__",
    "build_options",
    "build_request",
    "extract_response_data",
    "send",
    "send_async",
    "send_delete",
    "send_delete_async",
    "send_get",
    "send_get_async",
    "send_patch",
    "send_patch_async",
    "send_post",
    "send_post_async",
    "send_put",
    "send_put_async",
    "validate_response",
]

from importlib.metadata import PackageNotFoundError, version

from fetchwise.core.config import (
    Options,
    RequestOptions,
    ResponseDataType,
    StatusCodeRange,
    build_options,
)
from fetchwise.exceptions import ErrorCode, HttpRequestError
from fetchwise.retry import CountedRetryPolicy, ScheduledRetryPolicy
from fetchwise.send import send, send_delete, send_get, send_patch, send_post, send_put
from fetchwise.send_async import (
    send_async,
    send_delete_async,
    send_get_async,
    send_patch_async,
    send_post_async,
    send_put_async,
)
from fetchwise.utils.request import build_request
from fetchwise.utils.response import ResponseEnvelope, extract_response_data, validate_response

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
