r"""HTTP response handling utilities.

This module provides functions for validating HTTP responses against
the acceptance rules of a request, and for extracting their body in
the shape requested by the caller.
"""

from __future__ import annotations

__all__ = [
    "Blob",
    "ResponseEnvelope",
    "extract_error_message_from_response_body",
    "extract_response_data",
    "validate_response",
]

import json
import logging
from dataclasses import dataclass
from email.parser import BytesParser
from email.policy import HTTP
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import parse_qs

import httpx

from fetchwise.core.config import ResponseDataType, to_response_data_type
from fetchwise.exceptions import ErrorCode, HttpRequestError

if TYPE_CHECKING:
    from collections.abc import Callable

    from fetchwise.core.config import Options
    from fetchwise.utils.request import BuiltRequest

logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")

# Longest diagnostic message read from the body of a failed response
MAX_ERROR_MESSAGE_LENGTH = 1000

# JSON keys commonly used by APIs to describe an error
_ERROR_MESSAGE_KEYS = ("error", "message", "detail", "error_description", "title")


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Result of a successful request.

    Attributes:
        code: The HTTP status code.
        status_text: The reason phrase of the status code.
        headers: The response headers.
        data: The response body, in the shape requested by the caller.
    """

    code: int
    status_text: str
    headers: httpx.Headers
    data: T


@dataclass(frozen=True)
class Blob:
    """Raw response body with its media type.

    Attributes:
        content: The body bytes.
        content_type: The Content-Type of the response, or an empty
            string.
    """

    content: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


def validate_response(request: BuiltRequest, response: httpx.Response, options: Options) -> None:
    """Validate a response against the acceptance rules of a request.

    The status code must belong to ``options.acceptable_status_codes``
    when it is non-empty, or to ``options.acceptable_status_codes_range``
    otherwise. The status check is skipped when neither is configured.
    When ``options.validate_content_type`` is enabled, the response must
    carry a Content-Type header with the same media type as the request,
    parameters such as ``charset`` being ignored.

    Args:
        request: The request that produced the response.
        response: The response to validate.
        options: The options of the request.

    Raises:
        HttpRequestError: With ``UNEXPECTED_RESPONSE_STATUS_CODE``,
            ``INVALID_RESPONSE_CONTENT_TYPE`` or ``CONTENT_TYPE_MISSMATCH``.
    """
    status_code = response.status_code
    if options.acceptable_status_codes:
        is_acceptable = status_code in options.acceptable_status_codes
    elif options.acceptable_status_codes_range is not None:
        is_acceptable = status_code in options.acceptable_status_codes_range
    else:
        is_acceptable = True
    if not is_acceptable:
        logger.debug(
            f"{request.method} request to {request.url} failed with unexpected status {status_code}"
        )
        raise HttpRequestError(
            code=ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE,
            message=f"{request.method} request to {request.url} failed with status {status_code}",
            method=request.method,
            url=request.url,
            status_code=status_code,
            response=response,
        )

    if not options.validate_content_type:
        return
    received = response.headers.get("Content-Type", "")
    if not received.strip():
        raise HttpRequestError(
            code=ErrorCode.INVALID_RESPONSE_CONTENT_TYPE,
            message=f"The response of {request.method} request to {request.url} has no Content-Type",
            method=request.method,
            url=request.url,
            status_code=status_code,
            response=response,
        )
    expected = request.headers.get("Content-Type", "")
    if _media_type(received) != _media_type(expected):
        raise HttpRequestError(
            code=ErrorCode.CONTENT_TYPE_MISSMATCH,
            message=(
                f"The response of {request.method} request to {request.url} has Content-Type "
                f"'{received}' but '{expected}' was expected"
            ),
            method=request.method,
            url=request.url,
            status_code=status_code,
            response=response,
        )


def extract_response_data(response: httpx.Response, data_type: ResponseDataType | str) -> Any:
    """Extract the body of a response in a given shape.

    Exactly one body reader is used per call:

    - ``arrayBuffer``: the raw ``bytes``
    - ``blob``: a ``Blob`` holding the bytes and the media type
    - ``formData``: a ``dict[str, list]`` parsed from an urlencoded or
      a multipart body
    - ``json``: the parsed JSON document
    - ``text``: the decoded ``str``

    Callers must not extract the same response twice for different
    purposes: the body is meant to be consumed once.

    Args:
        response: The response, with its body already read.
        data_type: The shape of the data.

    Returns:
        The extracted data.

    Raises:
        HttpRequestError: With ``INVALID_RESPONSE_DTYPE`` if the data
            type is not supported, or ``INVALID_RESPONSE_BODY`` if the
            body cannot be read in this shape.

    Example:
        ```pycon
        >>> import httpx
        >>> from fetchwise.utils.response import extract_response_data
        >>> response = httpx.Response(200, json={"key": "value"})
        >>> extract_response_data(response, "json")
        {'key': 'value'}
        >>> extract_response_data(httpx.Response(200, text="hello"), "text")
        'hello'

        ```
    """
    reader = _READERS[to_response_data_type(data_type)]
    try:
        return reader(response)
    except (LookupError, ValueError) as exc:
        raise HttpRequestError(
            code=ErrorCode.INVALID_RESPONSE_BODY,
            message=f"The response body cannot be read as {ResponseDataType(data_type).value}: {exc}",
            url=_request_url(response),
            status_code=response.status_code,
            response=response,
            cause=exc,
        ) from exc


def extract_error_message_from_response_body(response: httpx.Response) -> str | None:
    """Extract a diagnostic message from the body of a failed response.

    JSON bodies are searched for the usual error keys (``error``,
    ``message``, ``detail``, ...), other bodies are returned as text.

    Args:
        response: The response.

    Returns:
        The diagnostic message, or None if the body is empty or was
        not read.

    Example:
        ```pycon
        >>> import httpx
        >>> from fetchwise.utils.response import extract_error_message_from_response_body
        >>> extract_error_message_from_response_body(
        ...     httpx.Response(400, json={"error": "The id is invalid"})
        ... )
        'The id is invalid'
        >>> extract_error_message_from_response_body(httpx.Response(500)) is None
        True

        ```
    """
    try:
        text = response.text.strip()
    except httpx.ResponseNotRead:
        return None
    if not text:
        return None
    try:
        body = json.loads(text)
    except ValueError:
        return text[:MAX_ERROR_MESSAGE_LENGTH]
    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if isinstance(value, str) and value:
                return value[:MAX_ERROR_MESSAGE_LENGTH]
    return text[:MAX_ERROR_MESSAGE_LENGTH]


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def _request_url(response: httpx.Response) -> str | None:
    try:
        return str(response.request.url)
    except RuntimeError:
        return None


def _read_blob(response: httpx.Response) -> Blob:
    return Blob(content=response.content, content_type=response.headers.get("Content-Type", ""))


def _read_form_data(response: httpx.Response) -> dict[str, list[str | bytes]]:
    content_type = response.headers.get("Content-Type", "")
    media_type = _media_type(content_type)
    if media_type == "application/x-www-form-urlencoded":
        return parse_qs(response.text, keep_blank_values=True)
    if media_type != "multipart/form-data":
        msg = f"Content-Type '{content_type}' is not a form data media type"
        raise ValueError(msg)

    message = BytesParser(policy=HTTP).parsebytes(
        b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + response.content
    )
    if not message.is_multipart():
        msg = "malformed multipart/form-data body"
        raise ValueError(msg)
    form: dict[str, list[str | bytes]] = {}
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if name is None:
            continue
        payload = part.get_payload(decode=True) or b""
        # Files keep their raw bytes, plain fields are decoded
        value = payload if part.get_filename() else payload.decode(part.get_content_charset() or "utf-8")
        form.setdefault(name, []).append(value)
    return form


_READERS: dict[ResponseDataType, Callable[[httpx.Response], Any]] = {
    ResponseDataType.ARRAY_BUFFER: lambda response: response.content,
    ResponseDataType.BLOB: _read_blob,
    ResponseDataType.FORM_DATA: _read_form_data,
    ResponseDataType.JSON: lambda response: response.json(),
    ResponseDataType.TEXT: lambda response: response.text,
}
