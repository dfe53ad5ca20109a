r"""Contains the synchronous request pipeline and the ``send`` functions."""

from __future__ import annotations

__all__ = ["send", "send_delete", "send_get", "send_patch", "send_post", "send_put"]

from typing import TYPE_CHECKING, Any

import httpx

from fetchwise.core.config import DEFAULT_TIMEOUT, build_options
from fetchwise.core.validation import validate_timeout
from fetchwise.exceptions import HttpRequestError
from fetchwise.retry import RetryExecutor, to_retry_policy
from fetchwise.utils.request import build_request
from fetchwise.utils.response import (
    ResponseEnvelope,
    extract_error_message_from_response_body,
    extract_response_data,
    validate_response,
)
from fetchwise.utils.transport import invoke_transport

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from fetchwise.core.config import Options
    from fetchwise.retry import BaseRetryPolicy


def execute_send(
    client: httpx.Client, target: str | httpx.URL, options: Options
) -> ResponseEnvelope[Any]:
    """Run the request pipeline once.

    The request is built, sent, validated, and its body is extracted.
    When the validation or the extraction fails, the diagnostic message
    found in the response body (if any) becomes the cause of the error.

    Args:
        client: The httpx client used to send the request.
        target: The target URL.
        options: The complete options of the request.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: If any step of the pipeline fails.
    """
    request = build_request(target, options.request_options)
    response = invoke_transport(client, request, on_redirect=options.on_redirect)
    try:
        validate_response(request, response, options)
        return ResponseEnvelope(
            code=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            data=extract_response_data(response, options.response_data_type),
        )
    except HttpRequestError as exc:
        cause = extract_error_message_from_response_body(response)
        if cause:
            raise exc.with_cause(cause) from exc
        raise


def send(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    *,
    client: httpx.Client | None = None,
    timeout: float | httpx.Timeout = DEFAULT_TIMEOUT,
) -> ResponseEnvelope[Any]:
    r"""Build and send an HTTP request, retrying it on failure.

    Each attempt runs the whole pipeline: the request is built from the
    target and the options, sent, its response is validated against
    the acceptable status codes and Content-Type, and its body is
    extracted in the requested shape. Failed attempts are retried
    following the retry policy, except rate limited requests (HTTP 429)
    and failures that cannot change (invalid URL, headers or options).

    Args:
        target: The target URL.
        options: The options of the request, as an ``Options``, a
            mapping of ``Options`` fields, or None for the defaults.
        retry_policy: The retry policy, or a list of delays in seconds
            applied before each retry. If None, the policy configured in
            the options is used (no retry by default).
        client: An optional httpx.Client object to use for making
            requests. If None, a new client will be created and closed
            after use.
        timeout: Maximum seconds to wait for the server response.
            Only used if client is None. Must be > 0.

    Returns:
        The response envelope holding the status code, the status text,
        the headers, and the extracted data.

    Raises:
        HttpRequestError: With one of the following codes:
            - INVALID_REQUEST_URL: if the target cannot be parsed
            - INVALID_REQUEST_HEADERS: if invalid headers are provided
            - MISSING_CONTENT_TYPE_HEADER: if the headers lack a Content-Type
            - INVALID_REQUEST_OPTIONS: if the request cannot be built from the options
            - UNEXPECTED_RESPONSE_STATUS_CODE: if the status code is not acceptable
            - INVALID_RESPONSE_CONTENT_TYPE: if the response lacks a Content-Type
            - CONTENT_TYPE_MISSMATCH: if the Content-Type headers do not match
            - INVALID_RESPONSE_DTYPE: if the data type is not supported
            - INVALID_RESPONSE_BODY: if the body cannot be read in the data type
            - REQUEST_FAILED: if the request cannot be sent
            - REQUEST_ABORTED: if the signal of the request is set
        ValueError: If timeout or a retry parameter is invalid.

    Example:
        ```pycon
        >>> from fetchwise import send
        >>> response = send(
        ...     "https://httpbin.org/post",
        ...     {"request_options": {"method": "POST", "body": {"key": "value"}}},
        ...     retry_policy=[3, 5],
        ... )  # doctest: +SKIP
        >>> response.data["json"]  # doctest: +SKIP
        {'key': 'value'}

        ```
    """
    validate_timeout(timeout)
    opts = build_options(options)
    executor = RetryExecutor(
        to_retry_policy(retry_policy, default=opts.retry_policy), on_retry=opts.on_retry
    )

    owns_client = client is None
    client = client or httpx.Client(timeout=timeout)
    try:
        return executor.execute(
            lambda: execute_send(client, target, opts),
            url=str(target),
            method=str(opts.request_options.method),
        )
    finally:
        if owns_client:
            client.close()


def send_get(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a GET request.

    GET requests are worth retrying when the network is unreliable,
    e.g. with ``retry_policy=[3, 5]``. The body option is ignored.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to GET.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.

    Example:
        ```pycon
        >>> from fetchwise import send_get
        >>> response = send_get("https://httpbin.org/get?foo=hey&bar=123")  # doctest: +SKIP
        >>> response.data["args"]  # doctest: +SKIP
        {'bar': '123', 'foo': 'hey'}

        ```
    """
    return send(target, build_options(options).with_method("GET"), retry_policy, **kwargs)


def send_post(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a POST request.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to POST.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return send(target, build_options(options).with_method("POST"), retry_policy, **kwargs)


def send_put(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a PUT request.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to PUT.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return send(target, build_options(options).with_method("PUT"), retry_policy, **kwargs)


def send_patch(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a PATCH request.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to PATCH.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return send(target, build_options(options).with_method("PATCH"), retry_policy, **kwargs)


def send_delete(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a DELETE request.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to DELETE.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return send(target, build_options(options).with_method("DELETE"), retry_policy, **kwargs)
