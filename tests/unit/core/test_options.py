from __future__ import annotations

import pytest

from fetchwise.core.config import (
    DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE,
    Options,
    RequestOptions,
    ResponseDataType,
    StatusCodeRange,
    build_options,
    to_request_options,
    to_response_data_type,
)
from fetchwise.exceptions import ErrorCode, HttpRequestError
from fetchwise.retry import CountedRetryPolicy, ScheduledRetryPolicy

#####################################
#     Tests for StatusCodeRange     #
#####################################


def test_status_code_range_contains() -> None:
    status_range = StatusCodeRange(min=200, max=299)
    assert 200 in status_range
    assert 250 in status_range
    assert 299 in status_range
    assert 199 not in status_range
    assert 300 not in status_range


def test_status_code_range_invalid() -> None:
    with pytest.raises(ValueError, match=r"min must be <= max"):
        StatusCodeRange(min=300, max=200)


####################################
#     Tests for RequestOptions     #
####################################


def test_request_options_defaults() -> None:
    options = RequestOptions()
    assert options.method == "GET"
    assert options.headers is None
    assert options.body is None
    assert options.mode == "cors"
    assert options.cache == "default"
    assert options.credentials == "same-origin"
    assert options.redirect == "follow"
    assert options.referrer == "about:client"
    assert options.referrer_policy == "no-referrer-when-downgrade"
    assert options.integrity == ""
    assert options.keep_alive is False
    assert options.signal is None


def test_request_options_merge() -> None:
    options = RequestOptions(body={"key": "value"})
    merged = options.merge(method="POST")
    assert merged.method == "POST"
    assert merged.body == {"key": "value"}
    assert options.method == "GET"


#############################
#     Tests for Options     #
#############################


def test_options_defaults() -> None:
    options = Options()
    assert options.request_options == RequestOptions()
    assert options.response_data_type == ResponseDataType.JSON
    assert options.acceptable_status_codes is None
    assert options.acceptable_status_codes_range == StatusCodeRange(min=200, max=299)
    assert options.validate_content_type
    assert options.retry_attempts == 0
    assert options.retry_delay_seconds == 3
    assert options.retry_delay_schedule is None
    assert options.on_retry is None
    assert options.on_redirect is None


def test_options_converts_loose_values() -> None:
    options = Options(
        request_options={"method": "POST"},
        response_data_type="text",
        acceptable_status_codes=[200, 201],
        acceptable_status_codes_range={"min": 200, "max": 204},
        retry_delay_schedule=[2, 1],
    )
    assert options.request_options == RequestOptions(method="POST")
    assert options.response_data_type == ResponseDataType.TEXT
    assert options.acceptable_status_codes == (200, 201)
    assert options.acceptable_status_codes_range == StatusCodeRange(min=200, max=204)
    assert options.retry_delay_schedule == (2, 1)


def test_options_status_range_from_pair() -> None:
    assert Options(acceptable_status_codes_range=(100, 399)).acceptable_status_codes_range == (
        StatusCodeRange(min=100, max=399)
    )


def test_options_status_range_invalid() -> None:
    with pytest.raises(HttpRequestError) as exc_info:
        Options(acceptable_status_codes_range={"min": 200})
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


def test_options_invalid_response_data_type() -> None:
    with pytest.raises(HttpRequestError, match=r"'xml' is invalid") as exc_info:
        Options(response_data_type="xml")
    assert exc_info.value.code == ErrorCode.INVALID_RESPONSE_DTYPE


def test_options_negative_retry_attempts() -> None:
    with pytest.raises(ValueError, match=r"retry_attempts must be >= 0"):
        Options(retry_attempts=-1)


@pytest.mark.parametrize(
    "overrides",
    [
        {"acceptable_status_codes": 200},
        {"acceptable_status_codes": "200"},
        {"retry_delay_schedule": 5},
        {"retry_delay_schedule": ["2", "1"]},
        {"retry_attempts": "3"},
        {"retry_delay_seconds": None},
    ],
)
def test_options_invalid_types(overrides: dict) -> None:
    with pytest.raises(HttpRequestError) as exc_info:
        Options(**overrides)
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


def test_options_retry_policy_counted() -> None:
    options = Options(retry_attempts=2, retry_delay_seconds=1.5)
    assert options.retry_policy == CountedRetryPolicy(attempts=2, delay_seconds=1.5)


def test_options_retry_policy_schedule_wins() -> None:
    options = Options(retry_attempts=5, retry_delay_schedule=[2, 1])
    assert options.retry_policy == ScheduledRetryPolicy([2, 1])


def test_options_merge_keeps_none() -> None:
    options = Options().merge(acceptable_status_codes_range=None)
    assert options.acceptable_status_codes_range is None
    assert Options().acceptable_status_codes_range == DEFAULT_ACCEPTABLE_STATUS_CODES_RANGE


def test_options_with_method() -> None:
    options = Options(request_options=RequestOptions(method="POST", body="data"))
    new_options = options.with_method("PUT")
    assert new_options.request_options.method == "PUT"
    assert new_options.request_options.body == "data"
    assert options.request_options.method == "POST"


###################################
#     Tests for build_options     #
###################################


def test_build_options_defaults() -> None:
    options = build_options()
    assert options.response_data_type == ResponseDataType.JSON
    assert options.response_data_type.value == "json"
    assert options.acceptable_status_codes_range == StatusCodeRange(min=200, max=299)
    assert options.retry_attempts == 0
    assert options.retry_delay_seconds == 3


def test_build_options_from_options() -> None:
    options = Options(retry_attempts=4)
    assert build_options(options) is options


def test_build_options_from_mapping() -> None:
    options = build_options(
        {"response_data_type": "blob", "request_options": {"method": "DELETE"}}
    )
    assert options.response_data_type == ResponseDataType.BLOB
    assert options.request_options.method == "DELETE"


def test_build_options_overrides() -> None:
    options = build_options({"retry_attempts": 1}, retry_delay_seconds=0.5)
    assert options.retry_attempts == 1
    assert options.retry_delay_seconds == 0.5


def test_build_options_unknown_field() -> None:
    with pytest.raises(HttpRequestError, match=r"Unknown Options fields: retries") as exc_info:
        build_options({"retries": 3})
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


def test_build_options_unknown_override() -> None:
    with pytest.raises(HttpRequestError) as exc_info:
        build_options(timeout=3)
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


def test_build_options_invalid_type() -> None:
    with pytest.raises(HttpRequestError) as exc_info:
        build_options(42)
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


########################################
#     Tests for to_request_options     #
########################################


def test_to_request_options_none() -> None:
    assert to_request_options(None) == RequestOptions()


def test_to_request_options_instance() -> None:
    options = RequestOptions(method="PATCH")
    assert to_request_options(options) is options


def test_to_request_options_unknown_field() -> None:
    with pytest.raises(HttpRequestError, match=r"Unknown RequestOptions fields: verb") as exc_info:
        to_request_options({"verb": "GET"})
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


def test_to_request_options_invalid_type() -> None:
    with pytest.raises(HttpRequestError) as exc_info:
        to_request_options("GET")
    assert exc_info.value.code == ErrorCode.INVALID_REQUEST_OPTIONS


###########################################
#     Tests for to_response_data_type     #
###########################################


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("arrayBuffer", ResponseDataType.ARRAY_BUFFER),
        ("blob", ResponseDataType.BLOB),
        ("formData", ResponseDataType.FORM_DATA),
        ("json", ResponseDataType.JSON),
        ("text", ResponseDataType.TEXT),
        (ResponseDataType.TEXT, ResponseDataType.TEXT),
    ],
)
def test_to_response_data_type(value: str, expected: ResponseDataType) -> None:
    assert to_response_data_type(value) == expected


@pytest.mark.parametrize("value", ["bytes", "JSON", "", None])
def test_to_response_data_type_invalid(value: str | None) -> None:
    with pytest.raises(HttpRequestError) as exc_info:
        to_response_data_type(value)
    assert exc_info.value.code == ErrorCode.INVALID_RESPONSE_DTYPE
