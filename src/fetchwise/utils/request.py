r"""Request building utilities.

This module turns a target locator and loosely typed request options
into an immutable request descriptor wrapping an ``httpx.Request``.
"""

from __future__ import annotations

__all__ = ["BuiltRequest", "build_request", "parse_integrity", "resolve_url"]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from fetchwise.core.config import (
    CACHE_MODES,
    CREDENTIALS_MODES,
    REDIRECT_MODES,
    REFERRER_POLICIES,
    REQUEST_METHODS,
    REQUEST_MODES,
    to_request_options,
)
from fetchwise.exceptions import ErrorCode, HttpRequestError
from fetchwise.utils.normalize import normalize_body, normalize_headers

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fetchwise.core.config import RequestOptions

logger: logging.Logger = logging.getLogger(__name__)

# Cache modes that translate to a Cache-Control request header
_CACHE_CONTROL = {"no-store": "no-store", "no-cache": "no-cache", "reload": "no-cache"}

INTEGRITY_ALGORITHMS = ("sha256", "sha384", "sha512")


@dataclass(frozen=True)
class BuiltRequest:
    """Immutable descriptor of an outbound HTTP request.

    Attributes:
        request: The httpx request sent on the wire.
        mode: The request mode.
        cache: The cache mode.
        credentials: The credentials mode.
        redirect: The redirect policy.
        referrer: The referrer.
        referrer_policy: The referrer policy.
        integrity: Subresource integrity metadata, or an empty string.
        keep_alive: Whether the connection is kept alive.
        signal: Optional cancellation signal.
    """

    request: httpx.Request
    mode: str = "cors"
    cache: str = "default"
    credentials: str = "same-origin"
    redirect: str = "follow"
    referrer: str = "about:client"
    referrer_policy: str = "no-referrer-when-downgrade"
    integrity: str = ""
    keep_alive: bool = False
    signal: Any = None

    @property
    def url(self) -> str:
        return str(self.request.url)

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def headers(self) -> httpx.Headers:
        return self.request.headers

    @property
    def content(self) -> bytes:
        return self.request.content


def resolve_url(value: Any) -> httpx.URL:
    """Resolve the target of a request to an absolute URL.

    Args:
        value: A textual URL or an ``httpx.URL``.

    Returns:
        The absolute URL.

    Raises:
        HttpRequestError: If the value is not an absolute http(s) URL.

    Example:
        ```pycon
        >>> from fetchwise.utils.request import resolve_url
        >>> str(resolve_url("https://httpbin.org/get?foo=hey"))
        'https://httpbin.org/get?foo=hey'

        ```
    """
    if isinstance(value, httpx.URL):
        url = value
    elif isinstance(value, str):
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise HttpRequestError(
                code=ErrorCode.INVALID_REQUEST_URL,
                message=f"The provided URL '{value}' is invalid: {exc}",
                url=value,
                cause=exc,
            ) from exc
    else:
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_URL,
            message=f"The request target must be a string or an httpx.URL, got {type(value).__name__}",
        )

    if url.scheme not in ("http", "https") or not url.host:
        raise HttpRequestError(
            code=ErrorCode.INVALID_REQUEST_URL,
            message=f"The provided URL '{value}' is not an absolute http(s) URL.",
            url=str(value),
        )
    return url


def parse_integrity(integrity: str) -> list[tuple[str, str]]:
    """Parse subresource integrity metadata.

    Args:
        integrity: Whitespace-separated ``<algorithm>-<base64 digest>``
            tokens.

    Returns:
        The ``(algorithm, digest)`` pairs.

    Raises:
        ValueError: If a token is malformed or uses an unsupported
            algorithm.

    Example:
        ```pycon
        >>> from fetchwise.utils.request import parse_integrity
        >>> parse_integrity("sha256-abc= sha512-def=")
        [('sha256', 'abc='), ('sha512', 'def=')]

        ```
    """
    pairs = []
    for token in integrity.split():
        algorithm, _, digest = token.partition("-")
        if algorithm not in INTEGRITY_ALGORITHMS or not digest:
            msg = f"Invalid integrity metadata '{token}'"
            raise ValueError(msg)
        pairs.append((algorithm, digest))
    return pairs


def build_request(
    input: str | httpx.URL,  # noqa: A002
    options: RequestOptions | Mapping[str, Any] | None = None,
) -> BuiltRequest:
    """Build an immutable request descriptor.

    The steps are:
    1. Resolve the target to an absolute URL.
    2. Normalize the headers and the body. GET requests never carry a
       body.
    3. Validate the transport knobs, whose unset values default to the
       ones of ``RequestOptions``.
    4. Construct the ``httpx.Request``.

    Since httpx is not a browser, the knobs translate as follows:
    ``cache`` set to ``no-store``, ``no-cache`` or ``reload`` adds a
    Cache-Control header, ``credentials="omit"`` drops the Cookie
    header, a referrer URL is sent as the Referer header unless the
    referrer policy is ``no-referrer``, and ``keep_alive`` sends
    ``Connection: keep-alive``. ``redirect`` and ``integrity`` are
    enforced when the request is sent.

    Args:
        input: The target URL.
        options: The request options, as a ``RequestOptions``, a
            mapping of its fields, or None.

    Returns:
        The request descriptor.

    Raises:
        HttpRequestError: With ``INVALID_REQUEST_URL``,
            ``INVALID_REQUEST_HEADERS``, ``MISSING_CONTENT_TYPE_HEADER``
            or ``INVALID_REQUEST_OPTIONS``.

    Example:
        ```pycon
        >>> from fetchwise.utils.request import build_request
        >>> request = build_request(
        ...     "https://httpbin.org/post", {"method": "POST", "body": {"key": "value"}}
        ... )
        >>> request.method, request.url
        ('POST', 'https://httpbin.org/post')
        >>> request.content
        b'{"key": "value"}'

        ```
    """
    url = resolve_url(input)
    opts = to_request_options(options)

    method = opts.method.upper() if isinstance(opts.method, str) else opts.method
    if method not in REQUEST_METHODS:
        raise _invalid_options(f"Unsupported request method {opts.method!r}", url=url)

    # Work on a copy so the caller's header collection is never mutated
    headers = httpx.Headers(normalize_headers(opts.headers))
    content = normalize_body(opts.body, method)

    _check_choice("mode", opts.mode, REQUEST_MODES, url)
    _check_choice("cache", opts.cache, CACHE_MODES, url)
    _check_choice("credentials", opts.credentials, CREDENTIALS_MODES, url)
    _check_choice("redirect", opts.redirect, REDIRECT_MODES, url)
    _check_choice("referrer_policy", opts.referrer_policy, REFERRER_POLICIES, url)
    if opts.signal is not None and not callable(getattr(opts.signal, "is_set", None)):
        raise _invalid_options("The signal must provide an is_set() method", url=url)
    try:
        parse_integrity(opts.integrity)
    except (AttributeError, ValueError) as exc:
        raise _invalid_options(f"Invalid integrity {opts.integrity!r}", url=url, cause=exc) from exc

    if opts.cache in _CACHE_CONTROL:
        headers.setdefault("Cache-Control", _CACHE_CONTROL[opts.cache])
    if opts.credentials == "omit":
        headers.pop("Cookie", None)
    if opts.referrer not in ("", "about:client") and opts.referrer_policy != "no-referrer":
        try:
            referrer = resolve_url(opts.referrer)
        except HttpRequestError as exc:
            raise _invalid_options(
                f"Invalid referrer {opts.referrer!r}", url=url, cause=exc
            ) from exc
        headers["Referer"] = str(referrer)
    if opts.keep_alive:
        headers.setdefault("Connection", "keep-alive")

    try:
        request = httpx.Request(method, url, headers=headers, content=content)
    except (TypeError, ValueError) as exc:
        raise _invalid_options(
            f"The request cannot be constructed: {exc}", url=url, cause=exc
        ) from exc

    logger.debug(f"Built {method} request to {url}")
    return BuiltRequest(
        request=request,
        mode=opts.mode,
        cache=opts.cache,
        credentials=opts.credentials,
        redirect=opts.redirect,
        referrer=opts.referrer,
        referrer_policy=opts.referrer_policy,
        integrity=opts.integrity,
        keep_alive=bool(opts.keep_alive),
        signal=opts.signal,
    )


def _check_choice(name: str, value: Any, choices: tuple[str, ...], url: httpx.URL) -> None:
    if value not in choices:
        raise _invalid_options(
            f"Invalid {name} {value!r}, expected one of {', '.join(map(repr, choices))}",
            url=url,
        )


def _invalid_options(
    message: str, *, url: httpx.URL, cause: BaseException | None = None
) -> HttpRequestError:
    return HttpRequestError(
        code=ErrorCode.INVALID_REQUEST_OPTIONS, message=message, url=str(url), cause=cause
    )
