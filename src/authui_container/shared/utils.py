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

import re
from typing import Any, Mapping, Optional

# https://cloud.google.com/storage/docs/naming-buckets#requirements
MAX_BUCKET_STRING_LENGTH = 63
# Substituted at the end of a bucket name so that it ends with a letter or number.
ALLOWED_LAST_CHAR = "0"

_SAFE_URL_RE = re.compile(r"^(?:(?:https?|mailto|ftp):|[^:/?#]*(?:[/?#]|$))", re.IGNORECASE)
# about:invalid is registered in http://www.w3.org/TR/css3-values/#about-invalid
INNOCUOUS_STRING = "about:invalid"


def format_string(template: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Replaces '{name}' placeholders with their values:
    format_string('project/{projectId}/{api}', {'projectId': '1234', 'api': 'resource'})
    returns 'project/1234/resource'. Unknown placeholders are left untouched.
    """
    formatted = template
    for key, value in (params or {}).items():
        formatted = formatted.replace("{" + key + "}", str(value))
    return formatted


def is_safe_url(url: str) -> bool:
    return bool(_SAFE_URL_RE.match(url))


def sanitize_url(url: str) -> str:
    if not is_safe_url(url):
        return INNOCUOUS_STRING
    return url


def is_last_char_letter_or_number(value: str) -> bool:
    return bool(value) and value[-1].isascii() and value[-1].isalnum()


def compute_bucket_name(configuration: Optional[str], project_number: str) -> str:
    """
    Bucket name holding the custom UI configuration of a Cloud Run configuration.
    Overflowing characters are trimmed and the name always ends with a letter or number.
    """
    bucket_name = f"gcip-iap-bucket-{configuration or ''}-{project_number}"[:MAX_BUCKET_STRING_LENGTH]
    if not is_last_char_letter_or_number(bucket_name):
        bucket_name = bucket_name[:-1] + ALLOWED_LAST_CHAR
    return bucket_name
