from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import threading
from typing import TYPE_CHECKING
from unittest.mock import Mock

import httpx
import pytest

from fetchwise.callbacks import RedirectInfo
from fetchwise.exceptions import ErrorCode, HttpRequestError
from fetchwise.utils.request import build_request
from fetchwise.utils.transport import (
    check_integrity,
    invoke_transport,
    invoke_transport_async,
)

if TYPE_CHECKING:
    from collections.abc import Generator

BODY = b'{"key": "value"}'


def redirect_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/old":
        return httpx.Response(301, headers={"Location": "https://example.com/new"})
    return httpx.Response(200, content=BODY, headers={"Content-Type": "application/json"})


def sri(algorithm: str, content: bytes) -> str:
    return f"{algorithm}-{base64.b64encode(hashlib.new(algorithm, content).digest()).decode()}"


@pytest.fixture
def redirect_client() -> Generator[httpx.Client, None, None]:
    with httpx.Client(transport=httpx.MockTransport(redirect_handler)) as client:
        yield client


######################################
#     Tests for invoke_transport     #
######################################


def test_invoke_transport(echo_client: httpx.Client) -> None:
    response = invoke_transport(echo_client, build_request("https://example.com/get?foo=hey"))
    assert response.status_code == 200
    assert response.json()["args"] == {"foo": "hey"}


def test_invoke_transport_follow_redirect(
    redirect_client: httpx.Client, caplog: pytest.LogCaptureFixture
) -> None:
    on_redirect = Mock()
    with caplog.at_level(logging.WARNING):
        response = invoke_transport(
            redirect_client, build_request("https://example.com/old"), on_redirect=on_redirect
        )
    assert response.status_code == 200
    assert str(response.url) == "https://example.com/new"
    assert (
        "The request sent to 'https://example.com/old' was redirected to "
        "'https://example.com/new'. Please update the implementation to avoid future "
        "redirections." in caplog.messages
    )
    on_redirect.assert_called_once_with(
        RedirectInfo(
            url="https://example.com/old",
            final_url="https://example.com/new",
            method="GET",
            status_code=200,
        )
    )


def test_invoke_transport_no_redirect_no_warning(
    redirect_client: httpx.Client, caplog: pytest.LogCaptureFixture
) -> None:
    on_redirect = Mock()
    with caplog.at_level(logging.WARNING):
        invoke_transport(
            redirect_client, build_request("https://example.com/new"), on_redirect=on_redirect
        )
    assert not caplog.messages
    on_redirect.assert_not_called()


def test_invoke_transport_manual_redirect(redirect_client: httpx.Client) -> None:
    response = invoke_transport(
        redirect_client, build_request("https://example.com/old", {"redirect": "manual"})
    )
    assert response.status_code == 301
    assert response.headers["Location"] == "https://example.com/new"


def test_invoke_transport_error_redirect(redirect_client: httpx.Client) -> None:
    with pytest.raises(HttpRequestError, match=r"redirected") as exc_info:
        invoke_transport(
            redirect_client, build_request("https://example.com/old", {"redirect": "error"})
        )
    assert exc_info.value.code == ErrorCode.REQUEST_FAILED
    assert exc_info.value.status_code == 301


def test_invoke_transport_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HttpRequestError, match=r"Connection refused") as exc_info:
            invoke_transport(client, build_request("https://example.com/get"))
    assert exc_info.value.code == ErrorCode.REQUEST_FAILED
    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_invoke_transport_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("Read timed out", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HttpRequestError, match=r"timed out") as exc_info:
            invoke_transport(client, build_request("https://example.com/get"))
    assert exc_info.value.code == ErrorCode.REQUEST_FAILED


def test_invoke_transport_signal_set(mock_client: httpx.Client) -> None:
    signal = threading.Event()
    signal.set()
    with pytest.raises(HttpRequestError) as exc_info:
        invoke_transport(mock_client, build_request("https://example.com/get", {"signal": signal}))
    assert exc_info.value.code == ErrorCode.REQUEST_ABORTED
    mock_client.send.assert_not_called()


def test_invoke_transport_signal_set_during_request() -> None:
    signal = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        signal.set()
        return httpx.Response(200, json={})

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            invoke_transport(client, build_request("https://example.com/get", {"signal": signal}))
    assert exc_info.value.code == ErrorCode.REQUEST_ABORTED


def test_invoke_transport_integrity(redirect_client: httpx.Client) -> None:
    response = invoke_transport(
        redirect_client,
        build_request("https://example.com/new", {"integrity": sri("sha256", BODY)}),
    )
    assert response.content == BODY


def test_invoke_transport_integrity_mismatch(redirect_client: httpx.Client) -> None:
    with pytest.raises(HttpRequestError, match=r"integrity") as exc_info:
        invoke_transport(
            redirect_client,
            build_request("https://example.com/new", {"integrity": sri("sha256", b"other")}),
        )
    assert exc_info.value.code == ErrorCode.REQUEST_FAILED


#####################################
#     Tests for check_integrity     #
#####################################


def test_check_integrity_empty() -> None:
    check_integrity(build_request("https://example.com"), httpx.Response(200, content=BODY))


def test_check_integrity_strongest_algorithm_wins() -> None:
    # Only the sha512 digest is checked, the wrong sha256 digest is ignored
    integrity = f"{sri('sha256', b'other')} {sri('sha512', BODY)}"
    check_integrity(
        build_request("https://example.com", {"integrity": integrity}),
        httpx.Response(200, content=BODY),
    )


def test_check_integrity_strongest_algorithm_mismatch() -> None:
    integrity = f"{sri('sha256', BODY)} {sri('sha384', b'other')}"
    with pytest.raises(HttpRequestError) as exc_info:
        check_integrity(
            build_request("https://example.com", {"integrity": integrity}),
            httpx.Response(200, content=BODY),
        )
    assert exc_info.value.code == ErrorCode.REQUEST_FAILED


def test_check_integrity_any_matching_token() -> None:
    integrity = f"{sri('sha384', b'other')} {sri('sha384', BODY)}"
    check_integrity(
        build_request("https://example.com", {"integrity": integrity}),
        httpx.Response(200, content=BODY),
    )


############################################
#     Tests for invoke_transport_async     #
############################################


@pytest.mark.asyncio
async def test_invoke_transport_async(async_echo_client: httpx.AsyncClient) -> None:
    response = await invoke_transport_async(
        async_echo_client, build_request("https://example.com/get?foo=hey")
    )
    assert response.status_code == 200
    assert response.json()["args"] == {"foo": "hey"}


@pytest.mark.asyncio
async def test_invoke_transport_async_follow_redirect() -> None:
    on_redirect = Mock()
    async with httpx.AsyncClient(transport=httpx.MockTransport(redirect_handler)) as client:
        response = await invoke_transport_async(
            client, build_request("https://example.com/old"), on_redirect=on_redirect
        )
    assert str(response.url) == "https://example.com/new"
    on_redirect.assert_called_once()


@pytest.mark.asyncio
async def test_invoke_transport_async_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            await invoke_transport_async(client, build_request("https://example.com/get"))
    assert exc_info.value.code == ErrorCode.REQUEST_FAILED


@pytest.mark.asyncio
async def test_invoke_transport_async_signal_set(async_echo_client: httpx.AsyncClient) -> None:
    signal = asyncio.Event()
    signal.set()
    with pytest.raises(HttpRequestError) as exc_info:
        await invoke_transport_async(
            async_echo_client, build_request("https://example.com/get", {"signal": signal})
        )
    assert exc_info.value.code == ErrorCode.REQUEST_ABORTED


@pytest.mark.asyncio
async def test_invoke_transport_async_signal_not_set(
    async_echo_client: httpx.AsyncClient,
) -> None:
    response = await invoke_transport_async(
        async_echo_client, build_request("https://example.com/get", {"signal": asyncio.Event()})
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_invoke_transport_async_abort_in_flight() -> None:
    signal = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        signal.set()
        await asyncio.Event().wait()
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            await invoke_transport_async(
                client, build_request("https://example.com/get", {"signal": signal})
            )
    assert exc_info.value.code == ErrorCode.REQUEST_ABORTED


@pytest.mark.asyncio
async def test_invoke_transport_async_caller_cancelled() -> None:
    started = asyncio.Event()
    request_cancelled = Mock()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            request_cancelled()
            raise
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        task = asyncio.ensure_future(
            invoke_transport_async(
                client, build_request("https://example.com/get", {"signal": asyncio.Event()})
            )
        )
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    request_cancelled.assert_called_once_with()
