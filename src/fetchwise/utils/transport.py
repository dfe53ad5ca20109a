r"""Transport utilities sending a built request through an httpx
client."""

from __future__ import annotations

__all__ = ["check_integrity", "invoke_transport", "invoke_transport_async"]

import asyncio
import base64
import contextlib
import hashlib
import hmac
import logging
from typing import TYPE_CHECKING

import httpx

from fetchwise.callbacks import invoke_on_redirect
from fetchwise.exceptions import ErrorCode, HttpRequestError
from fetchwise.utils.request import INTEGRITY_ALGORITHMS, parse_integrity

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fetchwise.callbacks import RedirectInfo
    from fetchwise.utils.request import BuiltRequest

logger: logging.Logger = logging.getLogger(__name__)


def invoke_transport(
    client: httpx.Client,
    request: BuiltRequest,
    on_redirect: Callable[[RedirectInfo], None] | None = None,
) -> httpx.Response:
    """Send a request and return the response.

    A redirected request logs a warning and calls ``on_redirect`` as soon
    as the response is received, before the response is validated: a
    redirected request that later fails validation still reports the
    redirect.

    Args:
        client: The httpx client used to send the request.
        request: The request to send.
        on_redirect: Optional callback called when the request was
            redirected.

    Returns:
        The response, with its body already read.

    Raises:
        HttpRequestError: With ``REQUEST_ABORTED`` if the signal of the
            request is set, or ``REQUEST_FAILED`` if the request cannot
            be sent, is redirected while redirects are forbidden, or
            fails the integrity check.
    """
    _check_signal(request)
    logger.debug(f"Sending {request.method} request to {request.url}")
    try:
        response = client.send(request.request, follow_redirects=request.redirect == "follow")
    except httpx.RequestError as exc:
        raise _transport_error(request, exc) from exc
    _check_signal(request)
    return _finalize_response(request, response, on_redirect)


async def invoke_transport_async(
    client: httpx.AsyncClient,
    request: BuiltRequest,
    on_redirect: Callable[[RedirectInfo], None] | None = None,
) -> httpx.Response:
    """Send a request asynchronously and return the response.

    When the signal of the request is an ``asyncio.Event``, setting it
    while the request is in flight cancels the request. Cancelling the
    caller also cancels the request. Redirects are reported as in
    ``invoke_transport``.

    Args:
        client: The httpx async client used to send the request.
        request: The request to send.
        on_redirect: Optional callback called when the request was
            redirected.

    Returns:
        The response, with its body already read.

    Raises:
        HttpRequestError: With ``REQUEST_ABORTED`` if the signal of the
            request is set, or ``REQUEST_FAILED`` if the request cannot
            be sent, is redirected while redirects are forbidden, or
            fails the integrity check.
    """
    _check_signal(request)
    logger.debug(f"Sending {request.method} request to {request.url}")
    send = client.send(request.request, follow_redirects=request.redirect == "follow")
    try:
        if isinstance(request.signal, asyncio.Event):
            response = await _send_unless_aborted(request, send)
        else:
            response = await send
    except httpx.RequestError as exc:
        raise _transport_error(request, exc) from exc
    _check_signal(request)
    return _finalize_response(request, response, on_redirect)


def check_integrity(request: BuiltRequest, response: httpx.Response) -> None:
    """Check the response body against the integrity metadata of the
    request.

    The body matches when its digest equals the digest of at least one
    of the tokens using the strongest algorithm listed.

    Args:
        request: The request.
        response: The response, with its body already read.

    Raises:
        HttpRequestError: If the body does not match.
    """
    pairs = parse_integrity(request.integrity)
    if not pairs:
        return
    strongest = max((algorithm for algorithm, _ in pairs), key=INTEGRITY_ALGORITHMS.index)
    for algorithm, expected in pairs:
        if algorithm != strongest:
            continue
        digest = base64.b64encode(hashlib.new(algorithm, response.content).digest()).decode()
        if hmac.compare_digest(digest, expected):
            return
    raise HttpRequestError(
        code=ErrorCode.REQUEST_FAILED,
        message=f"The response of {request.method} request to {request.url} does not match the integrity metadata",
        method=request.method,
        url=request.url,
        status_code=response.status_code,
        response=response,
    )


async def _send_unless_aborted(
    request: BuiltRequest, send: Awaitable[httpx.Response]
) -> httpx.Response:
    send_task = asyncio.ensure_future(send)
    abort_task = asyncio.ensure_future(request.signal.wait())
    try:
        await asyncio.wait({send_task, abort_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        abort_task.cancel()
        # The request never outlives the call, even when the caller is cancelled
        if not send_task.done():
            send_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await send_task
    if send_task.cancelled():
        _check_signal(request)
    return send_task.result()


def _check_signal(request: BuiltRequest) -> None:
    if request.signal is not None and request.signal.is_set():
        raise HttpRequestError(
            code=ErrorCode.REQUEST_ABORTED,
            message=f"{request.method} request to {request.url} was aborted",
            method=request.method,
            url=request.url,
        )


def _finalize_response(
    request: BuiltRequest,
    response: httpx.Response,
    on_redirect: Callable[[RedirectInfo], None] | None,
) -> httpx.Response:
    if request.redirect == "error" and response.is_redirect:
        raise HttpRequestError(
            code=ErrorCode.REQUEST_FAILED,
            message=f"{request.method} request to {request.url} was redirected while redirects are forbidden",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
            response=response,
        )
    if response.history:
        logger.warning(
            f"The request sent to '{request.url}' was redirected to '{response.url}'. "
            "Please update the implementation to avoid future redirections."
        )
        invoke_on_redirect(
            on_redirect,
            url=request.url,
            final_url=str(response.url),
            method=request.method,
            status_code=response.status_code,
        )
    check_integrity(request, response)
    return response


def _transport_error(request: BuiltRequest, exc: httpx.RequestError) -> HttpRequestError:
    if isinstance(exc, httpx.TimeoutException):
        message = f"{request.method} request to {request.url} timed out"
    else:
        message = f"{request.method} request to {request.url} failed: {exc}"
    return HttpRequestError(
        code=ErrorCode.REQUEST_FAILED,
        message=message,
        method=request.method,
        url=request.url,
        cause=exc,
    )
