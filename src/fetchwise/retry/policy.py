r"""Retry policies deciding how many retries happen and how long to
wait before each one."""

from __future__ import annotations

__all__ = [
    "BaseRetryPolicy",
    "CountedRetryPolicy",
    "ScheduledRetryPolicy",
    "to_retry_policy",
]

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from fetchwise.core.validation import validate_retry_params

if TYPE_CHECKING:
    from collections.abc import Sequence


class BaseRetryPolicy(ABC):
    """Abstract base class for retry policies.

    A retry policy determines how long to wait before a given retry,
    and when no retry is left.
    """

    @property
    @abstractmethod
    def max_retries(self) -> int:
        """The number of retries allowed after the initial attempt."""

    @abstractmethod
    def get_delay(self, retry: int) -> float | None:
        """Return the delay before a given retry.

        Args:
            retry: The retry number (0-indexed). For example, retry=0
                is the first retry, retry=1 is the second retry, etc.

        Returns:
            The delay in seconds, or ``None`` if the policy does not
            allow this retry.
        """


class CountedRetryPolicy(BaseRetryPolicy):
    """Retry a fixed number of times with a flat delay.

    Args:
        attempts: The number of retries after the initial attempt.
        delay_seconds: The delay in seconds before every retry.

    Raises:
        ValueError: If ``attempts`` or ``delay_seconds`` is negative.

    Example:
        ```pycon
        >>> from fetchwise.retry import CountedRetryPolicy
        >>> policy = CountedRetryPolicy(attempts=2, delay_seconds=3)
        >>> policy.get_delay(0)
        3
        >>> policy.get_delay(1)
        3
        >>> policy.get_delay(2) is None
        True

        ```
    """

    def __init__(self, attempts: int = 0, delay_seconds: float = 3) -> None:
        validate_retry_params(retry_attempts=attempts, retry_delay_seconds=delay_seconds)
        self.attempts = attempts
        self.delay_seconds = delay_seconds

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(attempts={self.attempts}, "
            f"delay_seconds={self.delay_seconds})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CountedRetryPolicy):
            return NotImplemented
        return self.attempts == other.attempts and self.delay_seconds == other.delay_seconds

    @property
    def max_retries(self) -> int:
        return self.attempts

    def get_delay(self, retry: int) -> float | None:
        if retry >= self.attempts:
            return None
        return self.delay_seconds


class ScheduledRetryPolicy(BaseRetryPolicy):
    """Retry once per entry of a delay schedule.

    The schedule is consumed front to back: the first value is the
    delay before the first retry, the second value the delay before
    the second retry, and so on. An empty schedule means no retry.

    Args:
        schedule: The delays in seconds.

    Raises:
        ValueError: If a delay is negative.

    Example:
        ```pycon
        >>> from fetchwise.retry import ScheduledRetryPolicy
        >>> policy = ScheduledRetryPolicy([2, 1])
        >>> policy.max_retries
        2
        >>> policy.get_delay(0), policy.get_delay(1), policy.get_delay(2)
        (2, 1, None)

        ```
    """

    def __init__(self, schedule: Sequence[float]) -> None:
        validate_retry_params(retry_attempts=0, retry_delay_seconds=0, retry_delay_schedule=schedule)
        self.schedule = tuple(schedule)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(schedule={list(self.schedule)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScheduledRetryPolicy):
            return NotImplemented
        return self.schedule == other.schedule

    @property
    def max_retries(self) -> int:
        return len(self.schedule)

    def get_delay(self, retry: int) -> float | None:
        if retry >= len(self.schedule):
            return None
        return self.schedule[retry]


def to_retry_policy(
    policy: BaseRetryPolicy | Sequence[float] | None, default: BaseRetryPolicy
) -> BaseRetryPolicy:
    """Convert a loosely typed retry policy to a ``BaseRetryPolicy``.

    Args:
        policy: A retry policy, a delay schedule, or None.
        default: The policy used when ``policy`` is None.

    Returns:
        The retry policy.

    Example:
        ```pycon
        >>> from fetchwise.retry import CountedRetryPolicy, to_retry_policy
        >>> to_retry_policy([2, 1], default=CountedRetryPolicy())
        ScheduledRetryPolicy(schedule=[2, 1])
        >>> to_retry_policy(None, default=CountedRetryPolicy())
        CountedRetryPolicy(attempts=0, delay_seconds=3)

        ```
    """
    if policy is None:
        return default
    if isinstance(policy, BaseRetryPolicy):
        return policy
    return ScheduledRetryPolicy(policy)
