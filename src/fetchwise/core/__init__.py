r"""Core configuration and validation shared by the sync and async
APIs."""

from __future__ import annotations

__all__ = [
    "DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE",
    "DEFAULT_RESPONSE_DATA_TYPE",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "DEFAULT_TIMEOUT",
    "RATE_LIMIT_STATUS_CODE",
    "Options",
    "RequestOptions",
    "ResponseDataType",
    "StatusCodeRange",
    "build_options",
    "validate_retry_params",
    "validate_timeout",
]

from fetchwise.core.config import (
    DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE,
    DEFAULT_RESPONSE_DATA_TYPE,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_TIMEOUT,
    RATE_LIMIT_STATUS_CODE,
    Options,
    RequestOptions,
    ResponseDataType,
    StatusCodeRange,
    build_options,
)
from fetchwise.core.validation import validate_retry_params, validate_timeout
