r"""Parameter validation utilities for requests and retry policies.

This module provides validation functions for the numeric parameters
that configure the timeout and the retry behavior of a request.
"""

from __future__ import annotations

__all__ = ["validate_retry_params", "validate_timeout"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx


def validate_timeout(timeout: float | httpx.Timeout) -> None:
    """Validate timeout parameter.

    Args:
        timeout: Maximum seconds to wait for server responses.
            Must be > 0 if provided as a numeric value.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from fetchwise.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(30)
        >>> validate_timeout(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_retry_params(
    retry_attempts: int,
    retry_delay_seconds: float,
    retry_delay_schedule: Sequence[float] | None = None,
) -> None:
    """Validate retry parameters.

    Args:
        retry_attempts: Number of retries after the initial attempt.
            Must be >= 0. A value of 0 means no retries.
        retry_delay_seconds: Delay in seconds between two attempts.
            Must be >= 0.
        retry_delay_schedule: Optional sequence of delays in seconds,
            one per retry. Every delay must be >= 0.

    Raises:
        ValueError: If any of the values is negative.

    Example:
        ```pycon
        >>> from fetchwise.core.validation import validate_retry_params
        >>> validate_retry_params(retry_attempts=3, retry_delay_seconds=1.5)
        >>> validate_retry_params(
        ...     retry_attempts=0, retry_delay_seconds=3, retry_delay_schedule=[2, 1]
        ... )
        >>> validate_retry_params(retry_attempts=-1, retry_delay_seconds=3)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: retry_attempts must be >= 0, got -1

        ```
    """
    if retry_attempts < 0:
        msg = f"retry_attempts must be >= 0, got {retry_attempts}"
        raise ValueError(msg)
    if retry_delay_seconds < 0:
        msg = f"retry_delay_seconds must be >= 0, got {retry_delay_seconds}"
        raise ValueError(msg)
    if retry_delay_schedule is not None:
        for delay in retry_delay_schedule:
            if delay < 0:
                msg = f"retry_delay_schedule values must be >= 0, got {delay}"
                raise ValueError(msg)
