r"""Define the exception raised by every fetchwise operation."""

from __future__ import annotations

__all__ = ["ErrorCode", "HttpRequestError"]

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ErrorCode(str, Enum):
    r"""Machine-readable kinds of failures.

    The construction-time kinds (``INVALID_REQUEST_*`` and
    ``MISSING_CONTENT_TYPE_HEADER``) are deterministic for a given
    input, the other kinds depend on the server or the network.
    """

    INVALID_REQUEST_URL = "INVALID_REQUEST_URL"
    INVALID_REQUEST_HEADERS = "INVALID_REQUEST_HEADERS"
    MISSING_CONTENT_TYPE_HEADER = "MISSING_CONTENT_TYPE_HEADER"
    INVALID_REQUEST_OPTIONS = "INVALID_REQUEST_OPTIONS"
    UNEXPECTED_RESPONSE_STATUS_CODE = "UNEXPECTED_RESPONSE_STATUS_CODE"
    INVALID_RESPONSE_CONTENT_TYPE = "INVALID_RESPONSE_CONTENT_TYPE"
    CONTENT_TYPE_MISSMATCH = "CONTENT_TYPE_MISSMATCH"
    INVALID_RESPONSE_DTYPE = "INVALID_RESPONSE_DTYPE"
    INVALID_RESPONSE_BODY = "INVALID_RESPONSE_BODY"
    REQUEST_FAILED = "REQUEST_FAILED"
    REQUEST_ABORTED = "REQUEST_ABORTED"


class HttpRequestError(RuntimeError):
    r"""Exception raised when an HTTP request cannot be built, sent, or
    validated.

    Args:
        code: The kind of failure.
        message: A human-readable description of the failure.
        method: The HTTP method of the request, if known.
        url: The URL of the request, if known.
        status_code: The HTTP status code of the response, if any.
        response: The HTTP response, if any.
        cause: The underlying cause. It is either the exception that
            triggered this error, or a diagnostic message extracted
            from the response body.

    Example:
        ```pycon
        >>> from fetchwise.exceptions import ErrorCode, HttpRequestError
        >>> error = HttpRequestError(
        ...     code=ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE,
        ...     message="GET request to https://api.example.com failed with status 404",
        ...     method="GET",
        ...     url="https://api.example.com",
        ...     status_code=404,
        ... )
        >>> error.status_code
        404
        >>> str(error)
        '[UNEXPECTED_RESPONSE_STATUS_CODE] GET request to https://api.example.com failed with status 404'

        ```
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        response: httpx.Response | None = None,
        cause: BaseException | str | None = None,
    ) -> None:
        super().__init__(f"[{code.value}] {message}")
        self.code = code
        self.message = message
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response = response
        self.cause = cause

    def with_cause(self, cause: BaseException | str) -> HttpRequestError:
        r"""Return a copy of the error with a different cause.

        Args:
            cause: The new cause.

        Returns:
            The new error. The original error is left unchanged.
        """
        return HttpRequestError(
            code=self.code,
            message=self.message,
            method=self.method,
            url=self.url,
            status_code=self.status_code,
            response=self.response,
            cause=cause,
        )
