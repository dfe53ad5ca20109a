r"""Synchronous retry executor.

This module provides the RetryExecutor class that runs a request
pipeline and sends it again, following a retry policy, when it fails.
"""

from __future__ import annotations

__all__ = ["RetryExecutor"]

import logging
import time
from typing import TYPE_CHECKING, TypeVar

from fetchwise.callbacks import invoke_on_retry
from fetchwise.exceptions import HttpRequestError
from fetchwise.retry.decider import RetryDecider

if TYPE_CHECKING:
    from collections.abc import Callable

    from fetchwise.callbacks import RetryInfo
    from fetchwise.retry.policy import BaseRetryPolicy

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Executes a request pipeline with automatic retry logic.

    Every attempt runs the whole pipeline again (build, send, validate,
    extract). The loop is:

    ``ATTEMPT -> DONE`` on success, ``ATTEMPT -> DELAY -> ATTEMPT`` on a
    retry-eligible failure while the policy allows another retry, and
    ``ATTEMPT -> FAILED`` otherwise, the last failure being re-raised.

    Args:
        policy: The retry policy providing the delays.
        decider: Logic for deciding whether a failure is retried.
            Defaults to ``RetryDecider()``.
        on_retry: Optional callback called before each retry delay.

    Example:
        ```pycon
        >>> from fetchwise.retry import RetryExecutor, ScheduledRetryPolicy
        >>> executor = RetryExecutor(ScheduledRetryPolicy([2, 1]))
        >>> executor.execute(lambda: "ok", url="https://api.example.com", method="GET")
        'ok'

        ```
    """

    def __init__(
        self,
        policy: BaseRetryPolicy,
        decider: RetryDecider | None = None,
        on_retry: Callable[[RetryInfo], None] | None = None,
    ) -> None:
        self.policy = policy
        self.decider = decider if decider is not None else RetryDecider()
        self.on_retry = on_retry

    def execute(self, func: Callable[[], T], *, url: str, method: str) -> T:
        """Run the pipeline until it succeeds or cannot be retried.

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
                result = func()
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
                time.sleep(delay)
                retry += 1
            else:
                if retry > 0:
                    logger.debug(f"{method} request to {url} succeeded on attempt {retry + 1}")
                return result

    def _next_delay(
        self, error: HttpRequestError, retry: int, *, url: str, method: str
    ) -> float | None:
        max_attempts = self.policy.max_retries + 1
        if not self.decider.should_retry(error):
            return None
        delay = self.policy.get_delay(retry)
        if delay is None:
            logger.debug(f"{method} request to {url} failed after {retry + 1} attempts: {error}")
            return None
        logger.debug(
            f"{method} request to {url} failed (attempt {retry + 1}/{max_attempts}): {error}. "
            f"Waiting {delay:.2f}s before retry"
        )
        return delay
