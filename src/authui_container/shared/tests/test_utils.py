#    Copyright 2025 FAO
#
#    Licensed under the Apache License, Version 2.0 (the "License");
#    you may not use this file except in compliance with the License.
#    You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS,
#    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#    See the License for the specific language governing permissions and
#    limitations under the License.
#
#    Author: Carlo Cancellieri (ccancellieri@gmail.com)
#    Company: FAO, Viale delle Terme di Caracalla, 00100 Rome, Italy
#    Contact: copyright@fao.org - http://fao.org/contact-us/terms/en/

import pytest

from authui_container.shared.errors import ERROR_MAP, CloudApiException, error_response
from authui_container.shared.utils import (
    INNOCUOUS_STRING,
    compute_bucket_name,
    format_string,
    is_last_char_letter_or_number,
    sanitize_url,
)


# Tests for `format_string`
def test_format_string():
    assert format_string("project/{projectId}/{api}", {"projectId": "1234", "api": "resource"}) == "project/1234/resource"


def test_format_string_repeated_and_unknown_placeholders():
    assert format_string("{a}/{a}/{b}", {"a": 1}) == "1/1/{b}"


def test_format_string_without_params():
    assert format_string("project/{projectId}") == "project/{projectId}"


# Tests for `sanitize_url`
@pytest.mark.parametrize(
    "url",
    ["https://example.com/logo.png", "http://example.com", "mailto:a@example.com", "/static/logo.png", "logo.png", ""],
)
def test_sanitize_url_safe(url):
    assert sanitize_url(url) == url


@pytest.mark.parametrize("url", ["javascript:alert(1)", "data:text/html;base64,AAAA", "JavaScript:void(0)"])
def test_sanitize_url_unsafe(url):
    assert sanitize_url(url) == INNOCUOUS_STRING


# Tests for `compute_bucket_name`
def test_is_last_char_letter_or_number():
    assert is_last_char_letter_or_number("abc1")
    assert is_last_char_letter_or_number("abcZ")
    assert not is_last_char_letter_or_number("abc-")
    assert not is_last_char_letter_or_number("abcé")
    assert not is_last_char_letter_or_number("")


def test_compute_bucket_name():
    assert compute_bucket_name("my-config", "1234567") == "gcip-iap-bucket-my-config-1234567"


def test_compute_bucket_name_without_configuration():
    assert compute_bucket_name(None, "1234567") == "gcip-iap-bucket--1234567"


def test_compute_bucket_name_truncated():
    bucket_name = compute_bucket_name("c" * 80, "1234567")
    assert len(bucket_name) == 63
    assert bucket_name == "gcip-iap-bucket-" + "c" * 47


def test_compute_bucket_name_ends_with_letter_or_number():
    # Truncation right after the configuration name leaves a trailing dash.
    configuration = "c" * 46
    bucket_name = compute_bucket_name(configuration, "1234567")
    assert len(bucket_name) == 63
    assert bucket_name == "gcip-iap-bucket-" + configuration + "0"


# Tests for the error helpers
def test_error_response():
    assert error_response(404, "NOT_FOUND", "Missing.") == {
        "error": {"code": 404, "message": "Missing.", "status": "NOT_FOUND"}
    }


def test_error_map():
    assert ERROR_MAP["INVALID_ARGUMENT"]["error"]["code"] == 400
    assert ERROR_MAP["UNAUTHENTICATED"]["error"]["code"] == 401
    assert ERROR_MAP["NOT_FOUND"]["error"]["code"] == 404
    assert ERROR_MAP["UNKNOWN"]["error"]["status"] == "UNKNOWN"
    assert ERROR_MAP["UNAVAILABLE"]["error"]["code"] == 503


def test_cloud_api_exception():
    raw = error_response(403, "PERMISSION_DENIED", "Denied.")
    e = CloudApiException(403, "Denied.", raw_response=raw, cloud_compliant=True)
    assert str(e) == "Denied."
    assert e.status_code == 403
    assert e.raw_response == raw
    assert e.cloud_compliant
