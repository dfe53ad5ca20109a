r"""Asynchronous retry executor."""

from __future__ import annotations

__all__ = ["AsyncRetryExecutor"]

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from fetchwise.callbacks import invoke_on_retry
from fetchwise.exceptions import HttpRequestError
from fetchwise.retry.executor import RetryExecutor

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRetryExecutor(RetryExecutor):
    """Executes an async request pipeline with automatic retry logic.

    The retry loop is the one of ``RetryExecutor``; the delays are
    awaited with ``asyncio.sleep``.

    Example:
        ```pycon
        >>> import asyncio
        >>> from fetchwise.retry import AsyncRetryExecutor, CountedRetryPolicy
        >>> async def pipeline():
        ...     return "ok"
        ...
        >>> executor = AsyncRetryExecutor(CountedRetryPolicy(attempts=2))
        >>> asyncio.run(
        ...     executor.execute_async(pipeline, url="https://api.example.com", method="GET")
        ... )
        'ok'

        ```
    """

    async def execute_async(
        self, func: Callable[[], Awaitable[T]], *, url: str, method: str
    ) -> T:
        """Run the async pipeline until it succeeds or cannot be retried.

        Args:
            func: The pipeline. It raises ``HttpRequestError`` on failure.
            url: The URL being requested, used in logs and callbacks.
            method: The HTTP method, used in logs and callbacks.

        Returns:
            The result of the first successful attempt.

        Raises:
            HttpRequestError: The failure of the last attempt.
        """
        retry = 0
        while True:
            try:
                result = await func()
            except HttpRequestError as exc:
                delay = self._next_delay(exc, retry, url=url, method=method)
                if delay is None:
                    raise
                invoke_on_retry(
                    self.on_retry,
                    url=url,
                    method=method,
                    retry=retry,
                    max_retries=self.policy.max_retries,
                    wait_time=delay,
                    error=exc,
                )
                await asyncio.sleep(delay)
                retry += 1
            else:
                if retry > 0:
                    logger.debug(f"{method} request to {url} succeeded on attempt {retry + 1}")
                return result
