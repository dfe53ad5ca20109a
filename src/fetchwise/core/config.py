r"""Configuration dataclasses and defaults for HTTP requests.

This module provides configuration constants and the dataclass-based
configuration objects describing how a request is built, how its
response is validated and extracted, and how it is retried.
"""

from __future__ import annotations

__all__ = [
    "CACHE_MODES",
    "CREDENTIALS_MODES",
    "DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_RESPONSE_DATA_TYPE",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "DEFAULT_TIMEOUT",
    "RATE_LIMIT_STATUS_CODE",
    "REDIRECT_MODES",
    "REFERRER_POLICIES",
    "REQUEST_METHODS",
    "REQUEST_MODES",
    "Options",
    "RequestOptions",
    "ResponseDataType",
    "StatusCodeRange",
    "build_options",
    "to_request_options",
    "to_response_data_type",
]

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from fetchwise.core.validation import validate_retry_params
from fetchwise.exceptions import ErrorCode, HttpRequestError

if TYPE_CHECKING:
    from collections.abc import Callable

    from fetchwise.callbacks import RedirectInfo, RetryInfo
    from fetchwise.retry.policy import BaseRetryPolicy


# Default timeout in seconds for HTTP requests
DEFAULT_TIMEOUT = 10.0

# Content-Type sent when the caller does not provide any header
DEFAULT_CONTENT_TYPE = "application/json"

# Number of retries after the initial attempt
DEFAULT_RETRY_ATTEMPTS = 0

# Flat delay between two attempts of the counted retry policy
DEFAULT_RETRY_DELAY_SECONDS = 3

# 429: Too Many Requests. Never retried automatically because a blind
# retry does not honor the server's rate limit.
RATE_LIMIT_STATUS_CODE = 429

REQUEST_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
REQUEST_MODES = ("cors", "no-cors", "same-origin", "navigate")
CACHE_MODES = ("default", "no-store", "reload", "no-cache", "force-cache", "only-if-cached")
CREDENTIALS_MODES = ("omit", "same-origin", "include")
REDIRECT_MODES = ("follow", "error", "manual")
REFERRER_POLICIES = (
    "",
    "no-referrer",
    "no-referrer-when-downgrade",
    "origin",
    "origin-when-cross-origin",
    "same-origin",
    "strict-origin",
    "strict-origin-when-cross-origin",
    "unsafe-url",
)


class ResponseDataType(str, Enum):
    r"""Shapes in which the response body can be extracted."""

    ARRAY_BUFFER = "arrayBuffer"
    BLOB = "blob"
    FORM_DATA = "formData"
    JSON = "json"
    TEXT = "text"


DEFAULT_RESPONSE_DATA_TYPE = ResponseDataType.JSON


@dataclass(frozen=True)
class StatusCodeRange:
    """Inclusive range of acceptable HTTP status codes.

    Args:
        min: The lowest acceptable status code.
        max: The highest acceptable status code.

    Example:
        ```pycon
        >>> from fetchwise.core.config import StatusCodeRange
        >>> status_range = StatusCodeRange(min=200, max=299)
        >>> 204 in status_range
        True
        >>> 301 in status_range
        False

        ```
    """

    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min > self.max:
            msg = f"min must be <= max, got min={self.min} and max={self.max}"
            raise ValueError(msg)

    def __contains__(self, status_code: int) -> bool:
        return self.min <= status_code <= self.max


DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE = StatusCodeRange(min=200, max=299)


@dataclass
class RequestOptions:
    """Options used to build the outbound request.

    The transport knobs mirror the ones of a fetch request. Their
    effect on the httpx request is documented in
    ``fetchwise.utils.request.build_request``.

    Args:
        method: The HTTP method. One of ``REQUEST_METHODS``.
        headers: The request headers, as an ``httpx.Headers``, a
            mapping or a sequence of pairs. If None, the
            Content-Type is set to ``application/json``.
        body: The request body. Mappings and lists are serialized to
            JSON. Ignored for GET requests.
        mode: The request mode. One of ``REQUEST_MODES``.
        cache: The cache mode. One of ``CACHE_MODES``.
        credentials: The credentials mode. One of ``CREDENTIALS_MODES``.
        redirect: The redirect policy. One of ``REDIRECT_MODES``.
        referrer: The referrer URL, ``about:client`` or an empty string.
        referrer_policy: The referrer policy. One of ``REFERRER_POLICIES``.
        integrity: Subresource integrity metadata checked against the
            response body, e.g. ``sha256-<base64 digest>``.
        keep_alive: Whether to ask the server to keep the connection alive.
        signal: Optional cancellation signal, any object with an
            ``is_set()`` method such as ``threading.Event`` or
            ``asyncio.Event``.
    """

    method: str = "GET"
    headers: Any = None
    body: Any = None
    mode: str = "cors"
    cache: str = "default"
    credentials: str = "same-origin"
    redirect: str = "follow"
    referrer: str = "about:client"
    referrer_policy: str = "no-referrer-when-downgrade"
    integrity: str = ""
    keep_alive: bool = False
    signal: Any = None

    def merge(self, **overrides: Any) -> RequestOptions:
        """Create new request options with some fields overridden.

        Args:
            **overrides: The fields to override.

        Returns:
            The new request options. The original object is unchanged.
        """
        return replace(self, **overrides)


@dataclass
class Options:
    """Per-call configuration of a request.

    Args:
        request_options: The options used to build the request. A
            mapping of ``RequestOptions`` fields is also accepted.
        response_data_type: The shape of the extracted response data.
        acceptable_status_codes: Explicit set of acceptable status
            codes. When non-empty, it takes precedence over the range.
        acceptable_status_codes_range: Inclusive range of acceptable
            status codes. A ``(min, max)`` pair or a ``{"min", "max"}``
            mapping is also accepted. Set both this field and
            ``acceptable_status_codes`` to None to skip the status check.
        validate_content_type: Whether the response Content-Type must
            match the request Content-Type.
        retry_attempts: Number of retries of the counted retry policy.
        retry_delay_seconds: Delay before each retry of the counted
            retry policy.
        retry_delay_schedule: Optional delay schedule. When provided,
            it replaces the counted retry policy.
        on_retry: Optional callback called before each retry delay.
        on_redirect: Optional callback called when the request was
            redirected.

    Raises:
        HttpRequestError: If the request options or the response data
            type are invalid.
        ValueError: If a retry parameter is negative.
    """

    request_options: RequestOptions = field(default_factory=RequestOptions)
    response_data_type: ResponseDataType = DEFAULT_RESPONSE_DATA_TYPE
    acceptable_status_codes: tuple[int, ...] | None = None
    acceptable_status_codes_range: StatusCodeRange | None = DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE
    validate_content_type: bool = True
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    retry_delay_schedule: tuple[float, ...] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_redirect: Callable[[RedirectInfo], None] | None = None

    def __post_init__(self) -> None:
        self.request_options = to_request_options(self.request_options)
        self.response_data_type = to_response_data_type(self.response_data_type)
        if self.acceptable_status_codes is not None:
            self.acceptable_status_codes = _to_tuple(
                "acceptable_status_codes", self.acceptable_status_codes
            )
        if self.acceptable_status_codes_range is not None and not isinstance(
            self.acceptable_status_codes_range, StatusCodeRange
        ):
            self.acceptable_status_codes_range = _to_status_code_range(
                self.acceptable_status_codes_range
            )
        if self.retry_delay_schedule is not None:
            self.retry_delay_schedule = _to_tuple("retry_delay_schedule", self.retry_delay_schedule)
        try:
            validate_retry_params(
                retry_attempts=self.retry_attempts,
                retry_delay_seconds=self.retry_delay_seconds,
                retry_delay_schedule=self.retry_delay_schedule,
            )
        except TypeError as exc:
            # Negative values keep raising ValueError, wrong types are option errors
            raise HttpRequestError(
                code=ErrorCode.INVALID_REQUEST_OPTIONS,
                message=f"Invalid retry parameters: {exc}",
                cause=exc,
            ) from exc

    @property
    def retry_policy(self) -> BaseRetryPolicy:
        """The retry policy described by these options.

        The delay schedule wins over the counted policy when both are
        configured.
        """
        from fetchwise.retry.policy import CountedRetryPolicy, ScheduledRetryPolicy

        if self.retry_delay_schedule is not None:
            return ScheduledRetryPolicy(self.retry_delay_schedule)
        return CountedRetryPolicy(
            attempts=self.retry_attempts, delay_seconds=self.retry_delay_seconds
        )

    def merge(self, **overrides: Any) -> Options:
        """Create new options with some fields overridden.

        Unlike request headers or bodies, None is a meaningful value
        for several fields (e.g. it disables the status range check),
        so every override is applied as given.

        Args:
            **overrides: The fields to override.

        Returns:
            The new options. The original object is unchanged.

        Example:
            ```pycon
            >>> from fetchwise.core.config import Options
            >>> options = Options(retry_attempts=2)
            >>> options.merge(retry_attempts=5).retry_attempts
            5
            >>> options.retry_attempts
            2

            ```
        """
        return replace(self, **overrides)

    def with_method(self, method: str) -> Options:
        """Create new options with a different request method.

        Args:
            method: The HTTP method.

        Returns:
            The new options.
        """
        return self.merge(request_options=self.request_options.merge(method=method))


def build_options(options: Options | Mapping[str, Any] | None = None, **overrides: Any) -> Options:
    """Build the options of a request, filling in the defaults.

    Args:
        options: The caller options, as an ``Options``, a mapping of
            ``Options`` fields, or None.
        **overrides: Fields overriding the caller options.

    Returns:
        The complete options.

    Raises:
        HttpRequestError: If the options contain unknown fields or
            invalid values.

    Example:
        ```pycon
        >>> from fetchwise.core.config import build_options
        >>> options = build_options()
        >>> options.response_data_type.value
        'json'
        >>> options.acceptable_status_codes_range
        StatusCodeRange(min=200, max=299)
        >>> options.retry_attempts, options.retry_delay_seconds
        (0, 3)
        >>> build_options({"response_data_type": "text"}).response_data_type.value
        'text'

        ```
    """
    if options is None:
        options = Options()
    elif isinstance(options, Mapping):
        options = _from_mapping(Options, options)
    elif not isinstance(options, Options):
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_OPTIONS,
            message=f"Options must be an Options instance or a mapping, got {type(options).__name__}",
        )
    if overrides:
        _check_fields(Options, overrides)
        options = options.merge(**overrides)
    return options


def to_request_options(value: RequestOptions | Mapping[str, Any] | None) -> RequestOptions:
    """Convert a loosely typed value to ``RequestOptions``.

    Args:
        value: A ``RequestOptions``, a mapping of its fields, or None.

    Returns:
        The request options.

    Raises:
        HttpRequestError: If the value has an unsupported type or the
            mapping contains unknown fields.
    """
    if value is None:
        return RequestOptions()
    if isinstance(value, RequestOptions):
        return value
    if isinstance(value, Mapping):
        return _from_mapping(RequestOptions, value)
    raise HttpRequestError(
        code=ErrorCode.INVALID_REQUEST_OPTIONS,
        message=f"Request options must be a RequestOptions instance or a mapping, got {type(value).__name__}",
    )


def to_response_data_type(value: ResponseDataType | str) -> ResponseDataType:
    """Convert a value to a ``ResponseDataType``.

    Args:
        value: A ``ResponseDataType`` or its string value.

    Returns:
        The response data type.

    Raises:
        HttpRequestError: If the value is not a supported data type.

    Example:
        ```pycon
        >>> from fetchwise.core.config import to_response_data_type
        >>> to_response_data_type("arrayBuffer")
        <ResponseDataType.ARRAY_BUFFER: 'arrayBuffer'>

        ```
    """
    try:
        return ResponseDataType(value)
    except ValueError as exc:
        raise HttpRequestError(
            code=ErrorCode.INVALID_RESPONSE_DTYPE,
            message=f"The provided response data type '{value}' is invalid.",
            cause=exc,
        ) from exc


def _to_status_code_range(value: Any) -> StatusCodeRange:
    try:
        if isinstance(value, Mapping):
            return StatusCodeRange(min=value["min"], max=value["max"])
        low, high = value
        return StatusCodeRange(min=low, max=high)
    except (KeyError, TypeError, ValueError) as exc:
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_OPTIONS,
            message=f"Invalid acceptable status codes range: {value!r}",
            cause=exc,
        ) from exc


def _check_fields(cls: type, values: Mapping[str, Any]) -> None:
    unknown = sorted(set(values) - {f.name for f in fields(cls)})
    if unknown:
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_OPTIONS,
            message=f"Unknown {cls.__name__} fields: {', '.join(unknown)}",
        )


def _from_mapping(cls: type, values: Mapping[str, Any]) -> Any:
    _check_fields(cls, values)
    return cls(**values)


def _to_tuple(name: str, value: Any) -> tuple[Any, ...]:
    message = f"{name} must be a sequence, got {type(value).__name__}"
    # Strings are iterable but never a valid list of codes or delays
    if isinstance(value, (str, bytes)):
        raise HttpRequestError(code=ErrorCode.INVALID_REQUEST_OPTIONS, message=message)
    try:
        return tuple(value)
    except TypeError as exc:
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_OPTIONS, message=message, cause=exc
        ) from exc
