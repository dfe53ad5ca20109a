r"""Retry decision logic for determining whether to retry requests.

This module provides the RetryDecider class that encapsulates the logic
for deciding whether a failed request should be sent again.
"""

from __future__ import annotations

__all__ = ["NON_RETRYABLE_ERROR_CODES", "RetryDecider"]

import logging

from fetchwise.core.config import RATE_LIMIT_STATUS_CODE
from fetchwise.exceptions import ErrorCode, HttpRequestError

logger: logging.Logger = logging.getLogger(__name__)

# Failures that are deterministic for a given input, or that the caller
# asked for, so sending the same request again cannot help
NON_RETRYABLE_ERROR_CODES = frozenset(
    {
        ErrorCode.INVALID_REQUEST_URL,
        ErrorCode.INVALID_REQUEST_HEADERS,
        ErrorCode.MISSING_CONTENT_TYPE_HEADER,
        ErrorCode.INVALID_REQUEST_OPTIONS,
        ErrorCode.INVALID_RESPONSE_DTYPE,
        ErrorCode.REQUEST_ABORTED,
    }
)


class RetryDecider:
    """Decides whether a failed request should be retried.

    Rate limited requests (HTTP 429) are never retried: retrying
    blindly without the server's backoff guidance makes things worse.

    Args:
        non_retryable_codes: The error codes that are never retried.

    Example:
        ```pycon
        >>> from fetchwise.exceptions import ErrorCode, HttpRequestError
        >>> from fetchwise.retry import RetryDecider
        >>> decider = RetryDecider()
        >>> decider.should_retry(
        ...     HttpRequestError(ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE, "failed", status_code=503)
        ... )
        True
        >>> decider.should_retry(
        ...     HttpRequestError(ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE, "failed", status_code=429)
        ... )
        False

        ```
    """

    def __init__(self, non_retryable_codes: frozenset[ErrorCode] = NON_RETRYABLE_ERROR_CODES) -> None:
        self.non_retryable_codes = non_retryable_codes

    def should_retry(self, error: HttpRequestError) -> bool:
        """Determine if a failure should trigger a retry.

        Args:
            error: The failure to evaluate.

        Returns:
            ``True`` if the request may be sent again, otherwise ``False``.
        """
        if error.status_code == RATE_LIMIT_STATUS_CODE:
            logger.debug(f"Not retrying {error.method} request to {error.url}: rate limited")
            return False
        if error.code in self.non_retryable_codes:
            logger.debug(f"Not retrying {error.method} request to {error.url}: {error.code.value}")
            return False
        return True
