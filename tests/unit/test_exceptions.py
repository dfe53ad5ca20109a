from __future__ import annotations

from unittest.mock import Mock

import httpx
import pytest

from fetchwise.exceptions import ErrorCode, HttpRequestError

TEST_URL = "https://api.example.com/data"


######################################
#     Tests for HttpRequestError     #
######################################


def test_http_request_error_attributes() -> None:
    response = Mock(spec=httpx.Response, status_code=404)
    error = HttpRequestError(
        code=ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE,
        message=f"GET request to {TEST_URL} failed with status 404",
        method="GET",
        url=TEST_URL,
        status_code=404,
        response=response,
    )

    assert error.code == ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE
    assert error.message == f"GET request to {TEST_URL} failed with status 404"
    assert error.method == "GET"
    assert error.url == TEST_URL
    assert error.status_code == 404
    assert error.response is response
    assert error.cause is None


def test_http_request_error_str_contains_code() -> None:
    error = HttpRequestError(ErrorCode.INVALID_REQUEST_URL, "The URL is invalid")
    assert str(error) == "[INVALID_REQUEST_URL] The URL is invalid"


def test_http_request_error_defaults() -> None:
    error = HttpRequestError(ErrorCode.REQUEST_FAILED, "failed")
    assert error.method is None
    assert error.url is None
    assert error.status_code is None
    assert error.response is None


def test_http_request_error_is_raisable() -> None:
    with pytest.raises(HttpRequestError, match=r"\[REQUEST_ABORTED\] aborted"):
        raise HttpRequestError(ErrorCode.REQUEST_ABORTED, "aborted")


def test_http_request_error_with_cause() -> None:
    error = HttpRequestError(
        ErrorCode.UNEXPECTED_RESPONSE_STATUS_CODE,
        "failed with status 400",
        method="POST",
        url=TEST_URL,
        status_code=400,
    )
    new_error = error.with_cause("The id is invalid")

    assert new_error is not error
    assert new_error.cause == "The id is invalid"
    assert new_error.code == error.code
    assert new_error.message == error.message
    assert new_error.method == "POST"
    assert new_error.url == TEST_URL
    assert new_error.status_code == 400
    assert error.cause is None


def test_error_code_values_match_names() -> None:
    for code in ErrorCode:
        assert code.value == code.name


def test_error_code_is_str() -> None:
    assert ErrorCode.CONTENT_TYPE_MISSMATCH == "CONTENT_TYPE_MISSMATCH"
