r"""Contains the asynchronous request pipeline and the ``send_async``
functions."""

from __future__ import annotations

__all__ = [
    "send_async",
    "send_delete_async",
    "send_get_async",
    "send_patch_async",
    "send_post_async",
    "send_put_async",
]

from typing import TYPE_CHECKING, Any

import httpx

from fetchwise.core.config import DEFAULT_TIMEOUT, build_options
from fetchwise.core.validation import validate_timeout
from fetchwise.exceptions import HttpRequestError
from fetchwise.retry import AsyncRetryExecutor, to_retry_policy
from fetchwise.utils.request import build_request
from fetchwise.utils.response import (
    ResponseEnvelope,
    extract_error_message_from_response_body,
    extract_response_data,
    validate_response,
)
from fetchwise.utils.transport import invoke_transport_async

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from fetchwise.core.config import Options
    from fetchwise.retry import BaseRetryPolicy


async def execute_send_async(
    client: httpx.AsyncClient, target: str | httpx.URL, options: Options
) -> ResponseEnvelope[Any]:
    """Run the request pipeline once (asynchronous).

    Args:
        client: The httpx async client used to send the request.
        target: The target URL.
        options: The complete options of the request.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: If any step of the pipeline fails.
    """
    request = build_request(target, options.request_options)
    response = await invoke_transport_async(client, request, on_redirect=options.on_redirect)
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


async def send_async(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float | httpx.Timeout = DEFAULT_TIMEOUT,
) -> ResponseEnvelope[Any]:
    r"""Build and send an HTTP request asynchronously, retrying it on
    failure.

    This is the asynchronous version of ``send()``, with the same
    pipeline and retry semantics.

    Args:
        target: The target URL.
        options: The options of the request, as an ``Options``, a
            mapping of ``Options`` fields, or None for the defaults.
        retry_policy: The retry policy, or a list of delays in seconds
            applied before each retry. If None, the policy configured in
            the options is used (no retry by default).
        client: An optional httpx.AsyncClient object to use for making
            requests. If None, a new client will be created and closed
            after use.
        timeout: Maximum seconds to wait for the server response.
            Only used if client is None. Must be > 0.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
        ValueError: If timeout or a retry parameter is invalid.

    Example:
        ```pycon
        >>> import asyncio
        >>> from fetchwise import send_async
        >>> response = asyncio.run(
        ...     send_async("https://httpbin.org/get", retry_policy=[1, 2])
        ... )  # doctest: +SKIP

        ```
    """
    validate_timeout(timeout)
    opts = build_options(options)
    executor = AsyncRetryExecutor(
        to_retry_policy(retry_policy, default=opts.retry_policy), on_retry=opts.on_retry
    )

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=timeout)
    try:
        return await executor.execute_async(
            lambda: execute_send_async(client, target, opts),
            url=str(target),
            method=str(opts.request_options.method),
        )
    finally:
        if owns_client:
            await client.aclose()


async def send_get_async(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a GET request asynchronously.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to GET.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send_async()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return await send_async(
        target, build_options(options).with_method("GET"), retry_policy, **kwargs
    )


async def send_post_async(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a POST request asynchronously.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to POST.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send_async()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return await send_async(
        target, build_options(options).with_method("POST"), retry_policy, **kwargs
    )


async def send_put_async(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a PUT request asynchronously.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to PUT.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send_async()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return await send_async(
        target, build_options(options).with_method("PUT"), retry_policy, **kwargs
    )


async def send_patch_async(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a PATCH request asynchronously.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to PATCH.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send_async()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return await send_async(
        target, build_options(options).with_method("PATCH"), retry_policy, **kwargs
    )


async def send_delete_async(
    target: str | httpx.URL,
    options: Options | Mapping[str, Any] | None = None,
    retry_policy: BaseRetryPolicy | Sequence[float] | None = None,
    **kwargs: Any,
) -> ResponseEnvelope[Any]:
    r"""Build and send a DELETE request asynchronously.

    Args:
        target: The target URL.
        options: The options of the request. The method is forced to DELETE.
        retry_policy: The retry policy or delay schedule.
        **kwargs: Additional keyword arguments passed to ``send_async()``.

    Returns:
        The response envelope.

    Raises:
        HttpRequestError: See ``send()``.
    """
    return await send_async(
        target, build_options(options).with_method("DELETE"), retry_policy, **kwargs
    )
