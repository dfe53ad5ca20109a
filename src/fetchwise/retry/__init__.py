r"""Retry package sending failed requests again.

Public API:
    - BaseRetryPolicy: Base class of the retry policies
    - CountedRetryPolicy: Fixed number of retries with a flat delay
    - ScheduledRetryPolicy: One retry per entry of a delay schedule
    - RetryDecider: Logic for deciding whether to retry
    - RetryExecutor: Synchronous retry executor
    - AsyncRetryExecutor: Asynchronous retry executor
"""

from __future__ import annotations

__all__ = [
    "AsyncRetryExecutor",
    "BaseRetryPolicy",
    "CountedRetryPolicy",
    "RetryDecider",
    "RetryExecutor",
    "ScheduledRetryPolicy",
    "to_retry_policy",
]

from fetchwise.retry.decider import RetryDecider
from fetchwise.retry.executor import RetryExecutor
from fetchwise.retry.executor_async import AsyncRetryExecutor
from fetchwise.retry.policy import (
    BaseRetryPolicy,
    CountedRetryPolicy,
    ScheduledRetryPolicy,
    to_retry_policy,
)
