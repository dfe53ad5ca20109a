from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
import pytest_asyncio

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Generator


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Echo the request the way httpbin.org does."""
    data = request.content.decode()
    try:
        parsed = json.loads(data) if data else None
    except ValueError:
        parsed = None
    return httpx.Response(
        200,
        json={
            "args": dict(request.url.params),
            "data": data,
            "headers": dict(request.headers),
            "json": parsed,
            "method": request.method,
            "url": str(request.url),
        },
    )


@pytest.fixture
def echo() -> Callable[[httpx.Request], httpx.Response]:
    """Return the handler echoing the requests."""
    return echo_handler


@pytest.fixture
def mock_sleep() -> Generator[Mock, None, None]:
    """Patch time.sleep to make tests run faster."""
    with patch("time.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def mock_asleep() -> Generator[Mock, None, None]:
    """Patch asyncio.sleep to make tests run faster."""
    with patch("asyncio.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def echo_client() -> Generator[httpx.Client, None, None]:
    """Create an httpx.Client whose transport echoes the requests."""
    with httpx.Client(transport=httpx.MockTransport(echo_handler)) as client:
        yield client


@pytest_asyncio.fixture
async def async_echo_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an httpx.AsyncClient whose transport echoes the requests."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(echo_handler)) as client:
        yield client


@pytest.fixture
def mock_client() -> httpx.Client:
    """Create a mock httpx.Client for testing."""
    return Mock(spec=httpx.Client)


@pytest.fixture
def mock_async_client() -> httpx.AsyncClient:
    """Create a mock httpx.AsyncClient for testing."""
    return Mock(spec=httpx.AsyncClient, aclose=AsyncMock())
