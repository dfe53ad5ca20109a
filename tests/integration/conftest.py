from __future__ import annotations

import httpx
import pytest

# Use httpbin.org for real HTTP testing
HTTPBIN_URL = "https://httpbin.org"


@pytest.fixture(scope="session")
def httpbin_available() -> bool:
    """Return whether httpbin.org can be reached."""
    try:
        httpx.get(f"{HTTPBIN_URL}/status/200", timeout=5.0)
    except httpx.HTTPError:
        return False
    return True


@pytest.fixture(autouse=True)
def _require_httpbin(httpbin_available: bool) -> None:
    if not httpbin_available:
        pytest.skip("httpbin.org is not reachable")
