r"""Callback types and data structures for observability.

This module provides the callbacks that let users hook into the
lifecycle of a request for logging, metrics, or alerting:
- on_retry: Called before each retry delay
- on_redirect: Called when the server redirected the request

Example:
    ```pycon
    >>> from fetchwise import send_get
    >>> from fetchwise.callbacks import RetryInfo
    >>> def log_retry(retry_info: RetryInfo):
    ...     print(f"Retry {retry_info.attempt}/{retry_info.max_retries + 1}")
    ...
    >>> response = send_get(
    ...     "https://api.example.com/data",
    ...     {"retry_attempts": 2, "on_retry": log_retry},
    ... )  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = ["RedirectInfo", "RetryInfo", "invoke_on_redirect", "invoke_on_retry"]

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from fetchwise.exceptions import HttpRequestError


@dataclass
class RetryInfo:
    """Information passed to on_retry callback.

    Attributes:
        url: The URL being requested.
        method: The HTTP method (e.g., "GET", "POST").
        attempt: The number of the upcoming attempt (1-indexed).
            First retry is attempt 2.
        max_retries: Maximum number of retries allowed by the policy.
        wait_time: The delay in seconds before this retry.
        error: The error that triggered the retry.
        status_code: The HTTP status code that triggered the retry (if any).
    """

    url: str
    method: str
    attempt: int
    max_retries: int
    wait_time: float
    error: HttpRequestError
    status_code: int | None


@dataclass
class RedirectInfo:
    """Information passed to on_redirect callback.

    Attributes:
        url: The URL that was requested.
        final_url: The URL of the final response.
        method: The HTTP method (e.g., "GET", "POST").
        status_code: The HTTP status code of the final response.
    """

    url: str
    final_url: str
    method: str
    status_code: int


def invoke_on_retry(
    on_retry: Callable[[RetryInfo], None] | None,
    *,
    url: str,
    method: str,
    retry: int,
    max_retries: int,
    wait_time: float,
    error: HttpRequestError,
) -> None:
    """Invoke on_retry callback if provided.

    Args:
        on_retry: Optional callback to invoke.
        url: The URL being requested.
        method: The HTTP method.
        retry: The retry number (0-indexed).
        max_retries: Maximum number of retries.
        wait_time: The delay in seconds before the retry.
        error: The error that triggered the retry.
    """
    if on_retry is not None:
        on_retry(
            RetryInfo(
                url=url,
                method=method,
                attempt=retry + 2,
                max_retries=max_retries,
                wait_time=wait_time,
                error=error,
                status_code=error.status_code,
            )
        )


def invoke_on_redirect(
    on_redirect: Callable[[RedirectInfo], None] | None,
    *,
    url: str,
    final_url: str,
    method: str,
    status_code: int,
) -> None:
    """Invoke on_redirect callback if provided.

    Args:
        on_redirect: Optional callback to invoke.
        url: The URL that was requested.
        final_url: The URL of the final response.
        method: The HTTP method.
        status_code: The HTTP status code of the final response.
    """
    if on_redirect is not None:
        on_redirect(
            RedirectInfo(url=url, final_url=final_url, method=method, status_code=status_code)
        )
